"""Range variants identifying a span inside a (scoped) document.

A span is represented by exactly one of four variants, tried in priority
order: :class:`WholeDocument`, :class:`UniqueSubstring`,
:class:`AnchoredRange` and finally :class:`PositionRange`. The variants are
independent frozen dataclasses joined by the :data:`Range` union; code that
needs per-variant behaviour dispatches on the concrete type.

Each variant has a textual token used inside a serialized reference:

* ``WholeDocument`` -> nothing (it is never written),
* ``UniqueSubstring`` -> the escaped text,
* ``AnchoredRange`` -> ``<start>~<end>``,
* ``PositionRange`` -> ``@L:C-L:C`` (zero-based).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from .errors import ReferenceParseError
from .positions import EditorPosition

RANGE_BOUNDARY = "~"
POSITION_MARKER = "@"
RESERVED_CHARACTERS = frozenset("%#=|?,;&~@\n\r")
_EDGE_WHITESPACE = " \t"

_ESCAPE_PATTERN = re.compile(r"%([0-9A-Fa-f]{2})")
_POSITION_PATTERN = re.compile(r"^@(\d+):(\d+)-(\d+):(\d+)$")


@dataclass(slots=True, frozen=True)
class WholeDocument:
    """The span covers the entire (possibly scoped) document."""


@dataclass(slots=True, frozen=True)
class UniqueSubstring:
    """The span's text occurs exactly once in the document."""

    text: str

    def __post_init__(self) -> None:
        if not self.text:
            raise ValueError("UniqueSubstring text must be non-empty")


@dataclass(slots=True, frozen=True)
class AnchoredRange:
    """The span runs from the start of ``start`` to the end of ``end``."""

    start: str
    end: str

    def __post_init__(self) -> None:
        if not self.start or not self.end:
            raise ValueError("AnchoredRange anchors must be non-empty")


@dataclass(slots=True, frozen=True)
class PositionRange:
    """Literal ``(line, ch)`` boundaries relative to the scoped document."""

    start: EditorPosition
    end: EditorPosition


Range = Union[WholeDocument, UniqueSubstring, AnchoredRange, PositionRange]


def escape_text(text: str, *, keep: str = "") -> str:
    """Percent-escape reserved characters, leaving those in ``keep`` alone.

    Leading and trailing spaces and tabs are escaped too, so the token never
    starts or ends with whitespace.
    """

    lead = len(text) - len(text.lstrip(_EDGE_WHITESPACE))
    tail = len(text.rstrip(_EDGE_WHITESPACE))
    return "".join(
        f"%{ord(char):02X}"
        if (char in RESERVED_CHARACTERS and char not in keep) or not lead <= index < tail
        else char
        for index, char in enumerate(text)
    )


def unescape_text(text: str) -> str:
    """Reverse :func:`escape_text`; stray ``%`` signs are rejected."""

    if "%" not in text:
        return text
    stripped = _ESCAPE_PATTERN.sub("", text)
    if "%" in stripped:
        raise ReferenceParseError(
            f"Invalid escape sequence in {text!r}", reason="invalid_escape", fragment=text
        )
    return _ESCAPE_PATTERN.sub(lambda match: chr(int(match.group(1), 16)), text)


def range_to_token(value: Range) -> str:
    """Serialize a single range variant."""

    if isinstance(value, WholeDocument):
        return ""
    if isinstance(value, UniqueSubstring):
        return escape_text(value.text)
    if isinstance(value, AnchoredRange):
        return f"{escape_text(value.start)}{RANGE_BOUNDARY}{escape_text(value.end)}"
    if isinstance(value, PositionRange):
        start, end = value.start, value.end
        return f"{POSITION_MARKER}{start.line}:{start.ch}-{end.line}:{end.ch}"
    raise TypeError(f"Unsupported range value: {value!r}")


def range_from_token(token: str) -> Range:
    """Parse a token produced by :func:`range_to_token`."""

    if not token:
        raise ReferenceParseError("Empty range token", reason="empty_range", fragment=token)
    if token.startswith(POSITION_MARKER):
        match = _POSITION_PATTERN.match(token)
        if match is None:
            raise ReferenceParseError(
                f"Invalid position range {token!r}", reason="invalid_position", fragment=token
            )
        start_line, start_ch, end_line, end_ch = (int(group) for group in match.groups())
        return PositionRange(
            start=EditorPosition(start_line, start_ch),
            end=EditorPosition(end_line, end_ch),
        )
    if RANGE_BOUNDARY in token:
        parts = token.split(RANGE_BOUNDARY)
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ReferenceParseError(
                f"Invalid anchored range {token!r}", reason="invalid_anchor", fragment=token
            )
        return AnchoredRange(start=unescape_text(parts[0]), end=unescape_text(parts[1]))
    return UniqueSubstring(unescape_text(token))


__all__ = [
    "AnchoredRange",
    "POSITION_MARKER",
    "PositionRange",
    "RANGE_BOUNDARY",
    "RESERVED_CHARACTERS",
    "Range",
    "UniqueSubstring",
    "WholeDocument",
    "escape_text",
    "range_from_token",
    "range_to_token",
    "unescape_text",
]
