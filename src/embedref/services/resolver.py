"""Re-locate the spans of an embed reference inside a document."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.errors import RangeNotFoundError
from ..core.positions import LineIndex
from ..core.ranges import AnchoredRange, PositionRange, Range, UniqueSubstring, WholeDocument
from ..core.search import count_occurrences
from ..documents.embed import EmbedReference, parse_reference
from ..documents.markdown import StructureResolver

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ResolvedEmbed:
    """Excerpts located for a reference, with spans in document offsets."""

    reference: EmbedReference
    spans: tuple[tuple[int, int], ...]
    excerpts: tuple[str, ...]

    @property
    def text(self) -> str:
        return self.reference.join.display_separator.join(self.excerpts)


def resolve_reference(
    reference: EmbedReference | str,
    document: str,
    *,
    structure: StructureResolver | None = None,
) -> ResolvedEmbed:
    """Locate every range of ``reference`` in ``document``.

    Raises :class:`RangeNotFoundError` when the subpath or a range cannot be
    found; no approximate matching is attempted.
    """

    embed = parse_reference(reference) if isinstance(reference, str) else reference
    text = document or ""
    start_offset = 0
    scoped = text
    if embed.subpath:
        if structure is None:
            raise RangeNotFoundError(
                f"Reference is scoped to {embed.subpath!r} but no structure was provided",
                reason="structure_required",
            )
        bounds = structure.resolve_subpath(embed.subpath)
        if bounds is None:
            raise RangeNotFoundError(f"Subpath {embed.subpath!r} not found", reason="subpath_not_found")
        start_offset = bounds.start_offset
        scoped = text[bounds.start_offset : bounds.end_offset]

    if not embed.ranges:
        spans = [(0, len(scoped))]
    else:
        index = LineIndex(scoped)
        spans = [locate_range(scoped, item, index=index) for item in embed.ranges]

    LOGGER.debug("Resolved %d span(s) for %s", len(spans), embed.document)
    return ResolvedEmbed(
        reference=embed,
        spans=tuple((start + start_offset, end + start_offset) for start, end in spans),
        excerpts=tuple(scoped[start:end] for start, end in spans),
    )


def locate_range(document: str, value: Range, *, index: LineIndex | None = None) -> tuple[int, int]:
    """Return the ``(start, end)`` offsets of ``value`` inside ``document``."""

    if isinstance(value, WholeDocument):
        return 0, len(document)
    if isinstance(value, UniqueSubstring):
        start = document.find(value.text)
        if start == -1:
            raise RangeNotFoundError("Text not found", range=value)
        if count_occurrences(document, value.text, limit=2) > 1:
            raise RangeNotFoundError("Text is no longer unique", reason="ambiguous", range=value)
        return start, start + len(value.text)
    if isinstance(value, AnchoredRange):
        start = document.find(value.start)
        if start == -1:
            raise RangeNotFoundError("Start anchor not found", range=value)
        end = document.find(value.end, start)
        if end == -1:
            raise RangeNotFoundError("End anchor not found after start anchor", range=value)
        return start, end + len(value.end)
    if isinstance(value, PositionRange):
        active = index or LineIndex(document)
        if value.end.line >= active.line_count:
            raise RangeNotFoundError("Position range is past the end of the document", range=value)
        return active.offset_of(value.start), active.offset_of(value.end)
    raise TypeError(f"Unsupported range value: {value!r}")


__all__ = ["ResolvedEmbed", "locate_range", "resolve_reference"]
