"""Reference record, wire format and markdown structure."""

from .embed import DEFAULT_DISPLAY, DEFAULT_JOIN, DisplayMode, EmbedReference, JoinMode, parse_reference, serialize
from .markdown import MarkdownOutline, StructureResolver, SubpathBounds, strip_heading

__all__ = [
    "DEFAULT_DISPLAY",
    "DEFAULT_JOIN",
    "DisplayMode",
    "EmbedReference",
    "JoinMode",
    "MarkdownOutline",
    "StructureResolver",
    "SubpathBounds",
    "parse_reference",
    "serialize",
    "strip_heading",
]
