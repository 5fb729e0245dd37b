"""Build serialized embed references from editor selections."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.positions import EditorPosition, EditorRange, LineIndex, PositionIndexer
from ..core.ranges import AnchoredRange, PositionRange, Range, UniqueSubstring, WholeDocument
from ..core.search import find_anchors, is_unique
from ..documents.embed import DEFAULT_DISPLAY, DEFAULT_JOIN, EmbedReference, resolve_show, serialize
from ..documents.markdown import StructureResolver
from .settings import CopySettings

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class SelectedSpan:
    """One selected span: editor boundaries plus the literal selected text.

    ``text`` is authoritative when present; otherwise it is sliced from the
    document through the position indexer.
    """

    start: EditorPosition
    end: EditorPosition
    text: Optional[str] = None

    @property
    def range(self) -> EditorRange:
        return EditorRange(self.start, self.end)


@dataclass(slots=True, frozen=True)
class ScopedDocument:
    """Working text after narrowing to a structural section."""

    text: str
    subpath: str = ""
    start_offset: int = 0
    line_offset: int = 0


def build_embed(
    settings: CopySettings,
    document: str,
    selection: Sequence[SelectedSpan],
    *,
    document_id: str,
    structure: StructureResolver | None = None,
    indexer: PositionIndexer | None = None,
) -> str:
    """Return the serialized reference for ``selection`` inside ``document``."""

    return serialize(
        build_reference(
            settings,
            document,
            selection,
            document_id=document_id,
            structure=structure,
            indexer=indexer,
        )
    )


def build_reference(
    settings: CopySettings,
    document: str,
    selection: Sequence[SelectedSpan],
    *,
    document_id: str,
    structure: StructureResolver | None = None,
    indexer: PositionIndexer | None = None,
) -> EmbedReference:
    """Assemble the :class:`EmbedReference` for ``selection``."""

    if not selection:
        raise ValueError("Cannot build a reference for an empty selection")
    text = document or ""
    active_indexer = indexer or LineIndex(text)
    bounding = EditorRange.spanning([span.range for span in selection])
    scope = scope_document(text, bounding, structure, indexer=active_indexer)

    ranges: list[Range] = []
    for span in selection:
        selected_text = _selected_text(text, span, active_indexer)
        offset = active_indexer.offset_of(span.start) - scope.start_offset
        adjusted = span.range.shift_lines(-scope.line_offset)
        ranges.append(
            best_range(
                scope.text,
                selected_text,
                adjusted,
                offset=offset,
                compact=settings.compact_ranges,
                compact_min_length=settings.compact_min_length,
            )
        )

    return EmbedReference(
        document=document_id,
        subpath=scope.subpath,
        ranges=tuple(item for item in ranges if not isinstance(item, WholeDocument)),
        join=DEFAULT_JOIN,
        show=resolve_show(settings.default_show),
        display=settings.default_display or DEFAULT_DISPLAY,
    )


def scope_document(
    text: str,
    bounding: EditorRange,
    structure: StructureResolver | None,
    *,
    indexer: PositionIndexer | None = None,
) -> ScopedDocument:
    """Narrow ``text`` to the section enclosing ``bounding`` when one exists.

    A subpath that cannot be resolved back to offsets is kept in the reference
    but leaves the text unscoped. A subpath that resolves to a section not
    containing the selection (a repeated heading title) is dropped.
    """

    if structure is None:
        return ScopedDocument(text=text)
    subpath = structure.enclosing_subpath(bounding) or ""
    if not subpath:
        return ScopedDocument(text=text)

    bounds = structure.resolve_subpath(subpath)
    if bounds is None:
        LOGGER.warning("Could not resolve subpath %r; building an unscoped reference", subpath)
        return ScopedDocument(text=text, subpath=subpath)

    active_indexer = indexer or LineIndex(text)
    start = active_indexer.offset_of(bounding.start)
    end = active_indexer.offset_of(bounding.end)
    if start < bounds.start_offset or (bounds.end_offset is not None and end > bounds.end_offset):
        LOGGER.warning(
            "Subpath %r resolves to a section that does not contain the selection; "
            "building an unscoped reference",
            subpath,
        )
        return ScopedDocument(text=text)

    scoped = text[bounds.start_offset : bounds.end_offset]
    LOGGER.debug(
        "Scoped reference to %r (offset=%d, line=%d, chars=%d)",
        subpath,
        bounds.start_offset,
        bounds.start_line,
        len(scoped),
    )
    return ScopedDocument(
        text=scoped,
        subpath=subpath,
        start_offset=bounds.start_offset,
        line_offset=bounds.start_line,
    )


def best_range(
    document: str,
    selected_text: str,
    selected_range: EditorRange,
    *,
    offset: int | None = None,
    compact: bool = False,
    compact_min_length: int = 0,
) -> Range:
    """Pick the most robust range variant for ``selected_text`` in ``document``.

    ``offset`` is where the selection starts inside ``document``; when it
    does not line up with the text the first occurrence is used instead.
    """

    fallback = PositionRange(start=selected_range.start, end=selected_range.end)
    if document == selected_text:
        return WholeDocument()
    if not selected_text:
        return fallback

    anchor_offset = _anchor_offset(document, selected_text, offset)
    if is_unique(document, selected_text):
        if compact and len(selected_text) > compact_min_length and anchor_offset is not None:
            anchors = find_anchors(document, selected_text, anchor_offset)
            if not anchors.collapsed:
                return AnchoredRange(start=anchors.start, end=anchors.end)
        return UniqueSubstring(selected_text)

    if anchor_offset is None:
        LOGGER.debug("Selected text not found in scope; using position range")
        return fallback
    anchors = find_anchors(document, selected_text, anchor_offset)
    if anchors.collapsed:
        if is_unique(document, anchors.needle):
            return UniqueSubstring(anchors.needle)
    elif is_unique(document, anchors.start) and is_unique(document, anchors.end):
        return AnchoredRange(start=anchors.start, end=anchors.end)
    LOGGER.debug("Selection %r is ambiguous; using position range", selected_text[:40])
    return fallback


def _anchor_offset(document: str, needle: str, offset: int | None) -> int | None:
    if offset is not None and 0 <= offset and document[offset : offset + len(needle)] == needle:
        return offset
    first = document.find(needle)
    return first if first != -1 else None


def _selected_text(document: str, span: SelectedSpan, indexer: PositionIndexer) -> str:
    start = indexer.offset_of(span.start)
    end = indexer.offset_of(span.end)
    indexed = document[start:end]
    if span.text is None:
        return indexed
    if span.text != indexed:
        LOGGER.debug(
            "Selected text differs from indexed slice at %s-%s; keeping the literal text",
            span.start.to_tuple(),
            span.end.to_tuple(),
        )
    return span.text


__all__ = [
    "ScopedDocument",
    "SelectedSpan",
    "best_range",
    "build_embed",
    "build_reference",
    "scope_document",
]
