"""Markdown structure (headings, block ids, frontmatter) for subpath scoping."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, Optional, Protocol, Sequence

from markdown_it import MarkdownIt
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..core.positions import EditorRange, LineIndex

LOGGER = logging.getLogger(__name__)

_FRONTMATTER_FENCE = "---"
_FRONTMATTER_CLOSERS = {"---", "..."}
_BLOCK_ID_PATTERN = re.compile(r"(?:^|\s)\^(?P<id>[A-Za-z0-9-]+)\s*$")
_HEADING_NOISE = re.compile(r"[#^\[\]|\\:%]")
_WHITESPACE = re.compile(r"\s+")
_BLOCK_TOKENS = {
    "paragraph_open",
    "list_item_open",
    "blockquote_open",
    "table_open",
    "fence",
    "code_block",
    "html_block",
}


@dataclass(slots=True, frozen=True)
class SubpathBounds:
    """Character bounds of a resolved subpath.

    ``end_offset`` is ``None`` when the section runs to the end of the document.
    """

    start_offset: int
    start_line: int
    end_offset: Optional[int] = None


class StructureResolver(Protocol):
    """Maps spans to enclosing sections and sections back to offsets."""

    def enclosing_subpath(self, span: EditorRange) -> str:
        ...

    def resolve_subpath(self, subpath: str) -> SubpathBounds | None:
        ...


@dataclass(slots=True, frozen=True)
class Heading:
    level: int
    text: str
    line: int
    end_line: int

    @property
    def subpath_text(self) -> str:
        return strip_heading(self.text)


@dataclass(slots=True, frozen=True)
class Block:
    block_id: str
    start_line: int
    end_line: int


def strip_heading(text: str) -> str:
    """Normalize heading text so it can be used as a link subpath segment."""

    cleaned = _HEADING_NOISE.sub(" ", text or "")
    return _WHITESPACE.sub(" ", cleaned).strip()


def split_frontmatter(text: str) -> tuple[Optional[str], int]:
    """Return ``(frontmatter_block, body_line)`` for ``---`` fenced frontmatter."""

    lines = (text or "").split("\n")
    if not lines or lines[0].lstrip("\ufeff").rstrip() != _FRONTMATTER_FENCE:
        return None, 0
    for index, line in enumerate(lines[1:], start=1):
        if line.rstrip() in _FRONTMATTER_CLOSERS:
            return "\n".join(lines[1:index]), index + 1
    return None, 0


def parse_frontmatter(block: Optional[str]) -> Dict[str, Any]:
    """Load a frontmatter block with the safe YAML loader."""

    if not block or not block.strip():
        return {}
    parser = YAML(typ="safe")
    parser.allow_duplicate_keys = False
    try:
        loaded = parser.load(block)
    except YAMLError as exc:
        LOGGER.warning("Ignoring invalid frontmatter: %s", exc)
        return {}
    if isinstance(loaded, dict):
        return dict(loaded)
    return {}


class MarkdownOutline:
    """Heading and block structure of a markdown note.

    Headings open a section that runs until the next heading of the same or a
    higher level. Blocks are paragraphs, list items, quotes, tables and code
    that end with an Obsidian-style ``^block-id`` marker.
    """

    def __init__(self, text: str) -> None:
        self._text = text or ""
        self._index = LineIndex(self._text)
        self._frontmatter_block, self._body_line = split_frontmatter(self._text)
        self._headings, self._blocks = self._parse()

    @property
    def text(self) -> str:
        return self._text

    @property
    def headings(self) -> tuple[Heading, ...]:
        return self._headings

    @property
    def blocks(self) -> tuple[Block, ...]:
        return self._blocks

    @property
    def body_line(self) -> int:
        """First line after the frontmatter (``0`` without frontmatter)."""

        return self._body_line

    @cached_property
    def frontmatter(self) -> Dict[str, Any]:
        return parse_frontmatter(self._frontmatter_block)

    def enclosing_subpath(self, span: EditorRange) -> str:
        """Return the narrowest ``^block`` or heading chain containing ``span``."""

        first_line = span.start.line
        last_line = span.end.line
        if last_line > first_line and span.end.ch == 0:
            last_line -= 1
        if first_line < self._body_line:
            return ""

        blocks = [
            block
            for block in self._blocks
            if block.start_line <= first_line and last_line <= block.end_line
        ]
        if blocks:
            narrowest = min(blocks, key=lambda block: block.end_line - block.start_line)
            return f"^{narrowest.block_id}"

        containing = [
            index
            for index, heading in enumerate(self._headings)
            if heading.line <= first_line and last_line <= heading.end_line
        ]
        if not containing:
            return ""
        return "#".join(heading.subpath_text for heading in self._heading_chain(max(containing)))

    def resolve_subpath(self, subpath: str) -> SubpathBounds | None:
        """Return the bounds of ``subpath`` or ``None`` when it does not exist."""

        target = (subpath or "").strip().lstrip("#")
        if not target:
            return None
        if target.startswith("^"):
            block_id = target[1:]
            for block in self._blocks:
                if block.block_id == block_id:
                    return self._bounds(block.start_line, block.end_line)
            return None

        heading = self._find_heading_path([segment for segment in target.split("#") if segment])
        if heading is None:
            return None
        return self._bounds(heading.line, heading.end_line)

    def _bounds(self, start_line: int, end_line: int) -> SubpathBounds:
        start_offset = self._index.line_starts[start_line]
        end_offset: Optional[int] = None
        if end_line + 1 < self._index.line_count:
            end_offset = self._index.line_end(end_line)
        return SubpathBounds(start_offset=start_offset, start_line=start_line, end_offset=end_offset)

    def _heading_chain(self, index: int) -> list[Heading]:
        chain = [self._headings[index]]
        for candidate in reversed(self._headings[:index]):
            if candidate.level < chain[0].level:
                chain.insert(0, candidate)
        return chain

    def _find_heading_path(self, segments: Sequence[str]) -> Heading | None:
        parent: Heading | None = None
        cursor = 0
        for segment in segments:
            match: Heading | None = None
            for position in range(cursor, len(self._headings)):
                heading = self._headings[position]
                if parent is not None and heading.line > parent.end_line:
                    break
                if parent is not None and heading.level <= parent.level:
                    continue
                if heading.subpath_text == segment:
                    match = heading
                    cursor = position + 1
                    break
            if match is None:
                return None
            parent = match
        return parent

    def _parse(self) -> tuple[tuple[Heading, ...], tuple[Block, ...]]:
        lines = self._text.split("\n")
        body = "\n".join(lines[self._body_line :])
        last_line = len(lines) - 1
        tokens = _renderer().parse(body)

        raw_headings: list[tuple[int, str, int]] = []
        blocks: list[Block] = []
        for position, token in enumerate(tokens):
            if token.map is None:
                continue
            start = token.map[0] + self._body_line
            end = token.map[1] - 1 + self._body_line
            if token.type == "heading_open":
                inline = tokens[position + 1] if position + 1 < len(tokens) else None
                title = inline.content if inline is not None and inline.type == "inline" else ""
                raw_headings.append((int(token.tag[1:]), title.strip(), start))
                continue
            if token.type not in _BLOCK_TOKENS:
                continue
            if token.level != 0 and token.type != "list_item_open":
                continue
            end = min(end, last_line)
            while end > start and not lines[end].strip():
                end -= 1
            match = _BLOCK_ID_PATTERN.search(lines[end])
            if match:
                blocks.append(Block(block_id=match.group("id"), start_line=start, end_line=end))

        headings: list[Heading] = []
        for index, (level, title, line) in enumerate(raw_headings):
            end_line = last_line
            for next_level, _title, next_line in raw_headings[index + 1 :]:
                if next_level <= level:
                    end_line = next_line - 1
                    break
            headings.append(Heading(level=level, text=title, line=line, end_line=end_line))
        LOGGER.debug("Parsed outline: %d headings, %d blocks", len(headings), len(blocks))
        return tuple(headings), tuple(blocks)


_MARKDOWN_RENDERER: MarkdownIt | None = None


def _renderer() -> MarkdownIt:
    global _MARKDOWN_RENDERER
    if _MARKDOWN_RENDERER is None:
        renderer = MarkdownIt("commonmark", {"html": True})
        renderer.enable("table")
        renderer.enable("strikethrough")
        _MARKDOWN_RENDERER = renderer
    return _MARKDOWN_RENDERER


__all__ = [
    "Block",
    "Heading",
    "MarkdownOutline",
    "StructureResolver",
    "SubpathBounds",
    "parse_frontmatter",
    "split_frontmatter",
    "strip_heading",
]
