"""Portable references to spans of text inside markdown notes."""

from .documents.embed import DisplayMode, EmbedReference, JoinMode, parse_reference, serialize
from .services.builder import SelectedSpan, build_embed, build_reference
from .services.resolver import resolve_reference
from .services.settings import CopySettings

__version__ = "0.1.0"

__all__ = [
    "CopySettings",
    "DisplayMode",
    "EmbedReference",
    "JoinMode",
    "SelectedSpan",
    "build_embed",
    "build_reference",
    "parse_reference",
    "resolve_reference",
    "serialize",
]
