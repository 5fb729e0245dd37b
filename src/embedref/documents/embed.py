"""Embed reference record and its single-line wire format.

A reference serializes as::

    <document>[#<subpath>][=<range>(<sep><range>)*][|<display>][?<option>(,<option>)*]

The document id and range texts are percent-escaped (see
:func:`embedref.core.ranges.escape_text`); subpaths keep their ``#`` heading
separators. The range separator encodes the join mode, the display mode is
only written when it differs from :data:`DEFAULT_DISPLAY`, and only options
that differ from :data:`SHOW_DEFAULTS` are listed (``name`` when enabled,
``!name`` when disabled).
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from ..core.errors import ReferenceParseError
from ..core.ranges import (
    Range,
    WholeDocument,
    escape_text,
    range_from_token,
    range_to_token,
    unescape_text,
)


class DisplayMode(Enum):
    """How a re-displayed reference should render."""

    EMBED = "embed"
    QUOTE = "quote"
    CALLOUT = "callout"
    INLINE = "inline"


class JoinMode(Enum):
    """How the excerpts of a multi-range reference are concatenated."""

    PARAGRAPH = "paragraph"
    LINE = "line"
    ELLIPSIS = "ellipsis"

    @property
    def separator(self) -> str:
        """Return the token separating ranges on the wire."""

        return _JOIN_SEPARATORS[self]

    @property
    def display_separator(self) -> str:
        """Return the text placed between excerpts when re-displayed."""

        return _JOIN_DISPLAY[self]

    @classmethod
    def from_separator(cls, token: str) -> JoinMode:
        for mode, separator in _JOIN_SEPARATORS.items():
            if separator == token:
                return mode
        raise ValueError(f"Unknown join separator {token!r}")


_JOIN_SEPARATORS: dict[JoinMode, str] = {
    JoinMode.PARAGRAPH: ",",
    JoinMode.LINE: ";",
    JoinMode.ELLIPSIS: "&",
}
_JOIN_DISPLAY: dict[JoinMode, str] = {
    JoinMode.PARAGRAPH: "\n\n",
    JoinMode.LINE: "\n",
    JoinMode.ELLIPSIS: " … ",
}

DEFAULT_DISPLAY = DisplayMode.EMBED
DEFAULT_JOIN = JoinMode.PARAGRAPH
SHOW_DEFAULTS: Mapping[str, bool] = {"author": False, "title": False}

SUBPATH_MARKER = "#"
RANGES_MARKER = "="
DISPLAY_MARKER = "|"
OPTIONS_MARKER = "?"
OPTION_SEPARATOR = ","
NEGATION = "!"

_OPTION_NAME = re.compile(r"^[A-Za-z0-9_-]+$")
_REFERENCE_PATTERN = re.compile(
    r"(?P<document>[^#=|?]+)"
    r"(?:#(?P<subpath>[^=|?]*))?"
    r"(?:=(?P<ranges>[^|?]*))?"
    r"(?:\|(?P<display>[^?]*))?"
    r"(?:\?(?P<options>.*))?",
    re.DOTALL,
)


@dataclass(slots=True, frozen=True)
class EmbedReference:
    """Portable reference to one or more spans of a single document."""

    document: str
    subpath: str = ""
    ranges: tuple[Range, ...] = ()
    join: JoinMode = DEFAULT_JOIN
    show: dict[str, bool] = field(default_factory=dict)
    display: DisplayMode = DEFAULT_DISPLAY

    def __post_init__(self) -> None:
        if not self.document:
            raise ValueError("EmbedReference requires a document id")
        kept = tuple(item for item in self.ranges if not isinstance(item, WholeDocument))
        object.__setattr__(self, "ranges", kept)
        object.__setattr__(self, "show", resolve_show(self.show))

    def serialize(self) -> str:
        return serialize(self)


def resolve_show(*layers: Mapping[str, bool] | None) -> dict[str, bool]:
    """Merge option layers over :data:`SHOW_DEFAULTS`, later layers winning.

    Unknown options default to ``False``, so disabled unknown options are
    dropped to keep the mapping canonical.
    """

    merged: dict[str, bool] = dict(SHOW_DEFAULTS)
    for layer in layers:
        for name, value in (layer or {}).items():
            _require_option_name(name)
            merged[name] = bool(value)
    return {
        name: value
        for name, value in merged.items()
        if name in SHOW_DEFAULTS or value
    }


def serialize(embed: EmbedReference) -> str:
    """Return the single-line text form of ``embed``."""

    parts = [escape_text(embed.document)]
    if embed.subpath:
        parts.append(SUBPATH_MARKER + escape_text(embed.subpath, keep=SUBPATH_MARKER))
    tokens = [range_to_token(item) for item in embed.ranges]
    tokens = [token for token in tokens if token]
    if tokens:
        parts.append(RANGES_MARKER + embed.join.separator.join(tokens))
    if embed.display is not DEFAULT_DISPLAY:
        parts.append(DISPLAY_MARKER + embed.display.value)
    options = _options_token(embed.show)
    if options:
        parts.append(OPTIONS_MARKER + options)
    return "".join(parts)


def parse_reference(text: str) -> EmbedReference:
    """Parse the output of :func:`serialize` back into an :class:`EmbedReference`."""

    raw = text or ""
    match = _REFERENCE_PATTERN.fullmatch(raw)
    if match is None:
        raise ReferenceParseError(f"Malformed reference {raw!r}", reason="malformed", fragment=raw)

    document = unescape_text(match.group("document"))
    subpath = unescape_text(match.group("subpath") or "")
    ranges, join = _parse_ranges(match.group("ranges"))
    display = _parse_display(match.group("display"))
    show = _parse_options(match.group("options"))
    return EmbedReference(
        document=document,
        subpath=subpath,
        ranges=ranges,
        join=join,
        show=show,
        display=display,
    )


def _options_token(show: Mapping[str, bool]) -> str:
    entries: list[str] = []
    for name in sorted(show):
        value = bool(show[name])
        if value == SHOW_DEFAULTS.get(name, False):
            continue
        entries.append(name if value else NEGATION + name)
    return OPTION_SEPARATOR.join(entries)


def _parse_ranges(segment: str | None) -> tuple[tuple[Range, ...], JoinMode]:
    if segment is None:
        return (), DEFAULT_JOIN
    used = {separator for separator in _JOIN_SEPARATORS.values() if separator in segment}
    if len(used) > 1:
        raise ReferenceParseError(
            f"Range list mixes separators {sorted(used)}", reason="mixed_separators", fragment=segment
        )
    if not used:
        return (range_from_token(segment),), DEFAULT_JOIN
    separator = used.pop()
    ranges = tuple(range_from_token(token) for token in segment.split(separator))
    return ranges, JoinMode.from_separator(separator)


def _parse_display(segment: str | None) -> DisplayMode:
    if segment is None:
        return DEFAULT_DISPLAY
    try:
        return DisplayMode(segment)
    except ValueError as exc:
        raise ReferenceParseError(
            f"Unknown display mode {segment!r}", reason="invalid_display", fragment=segment
        ) from exc


def _parse_options(segment: str | None) -> dict[str, bool]:
    show: dict[str, bool] = {}
    if not segment:
        return show
    for entry in segment.split(OPTION_SEPARATOR):
        enabled = not entry.startswith(NEGATION)
        name = entry[len(NEGATION) :] if not enabled else entry
        if not _OPTION_NAME.match(name):
            raise ReferenceParseError(
                f"Invalid display option {entry!r}", reason="invalid_option", fragment=entry
            )
        show[name] = enabled
    return show


def _require_option_name(name: str) -> None:
    if not isinstance(name, str) or not _OPTION_NAME.match(name):
        raise ValueError(f"Invalid display option name {name!r}")


def coerce_display(value: DisplayMode | str | None) -> DisplayMode | None:
    """Accept a :class:`DisplayMode`, its value, or ``None``."""

    if value is None or isinstance(value, DisplayMode):
        return value
    return DisplayMode(str(value).strip().lower())


def display_choices() -> Iterable[str]:
    return [mode.value for mode in DisplayMode]


__all__ = [
    "DEFAULT_DISPLAY",
    "DEFAULT_JOIN",
    "DisplayMode",
    "EmbedReference",
    "JoinMode",
    "SHOW_DEFAULTS",
    "coerce_display",
    "display_choices",
    "parse_reference",
    "resolve_show",
    "serialize",
]
