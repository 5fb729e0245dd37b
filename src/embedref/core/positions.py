"""Line/column positions and the line index used to map them to offsets."""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Iterator, Protocol


@dataclass(slots=True, frozen=True, order=True)
class EditorPosition:
    """Zero-based ``(line, ch)`` cursor position inside a document."""

    line: int
    ch: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "line", self._coerce_index(self.line, "line"))
        object.__setattr__(self, "ch", self._coerce_index(self.ch, "ch"))

    @staticmethod
    def _coerce_index(value: Any, label: str) -> int:
        try:
            number = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"EditorPosition {label} must be an integer") from exc
        if number < 0:
            return 0
        return number

    def shift_lines(self, delta: int) -> EditorPosition:
        """Return a copy moved by ``delta`` lines (clamped at line 0)."""

        return EditorPosition(line=max(0, self.line + delta), ch=self.ch)

    def to_tuple(self) -> tuple[int, int]:
        return (self.line, self.ch)

    @classmethod
    def from_value(cls, value: Any) -> EditorPosition:
        """Coerce mappings, ``(line, ch)`` pairs and ``"L:C"`` strings."""

        if isinstance(value, EditorPosition):
            return value
        if isinstance(value, str):
            line, sep, ch = value.partition(":")
            if not sep:
                raise ValueError(f"Position {value!r} must use LINE:CH syntax")
            return cls(line.strip(), ch.strip())
        if isinstance(value, Mapping):
            if "line" not in value or "ch" not in value:
                raise ValueError("Position mappings require line and ch keys")
            return cls(value["line"], value["ch"])
        if isinstance(value, Sequence):
            seq = list(value)
            if len(seq) != 2:
                raise ValueError("Position sequences must have exactly two entries")
            return cls(seq[0], seq[1])
        raise TypeError("Unsupported EditorPosition input")


@dataclass(slots=True, frozen=True)
class EditorRange(Sequence[EditorPosition]):
    """A pair of positions; ``end`` is swapped in front when given first."""

    start: EditorPosition
    end: EditorPosition

    def __post_init__(self) -> None:
        if self.end < self.start:
            start, end = self.end, self.start
            object.__setattr__(self, "start", start)
            object.__setattr__(self, "end", end)

    def __len__(self) -> int:
        return 2

    def __getitem__(self, index: int | slice) -> Any:
        if isinstance(index, slice):
            return (self.start, self.end)[index]
        if index == 0:
            return self.start
        if index == 1:
            return self.end
        raise IndexError("EditorRange index out of range")

    def __iter__(self) -> Iterator[EditorPosition]:
        yield self.start
        yield self.end

    def contains(self, other: EditorRange) -> bool:
        """Return ``True`` when ``other`` lies fully inside this range."""

        return self.start <= other.start and other.end <= self.end

    def shift_lines(self, delta: int) -> EditorRange:
        return EditorRange(self.start.shift_lines(delta), self.end.shift_lines(delta))

    @classmethod
    def spanning(cls, ranges: Sequence[EditorRange]) -> EditorRange:
        """Return the smallest range covering every item of ``ranges``."""

        if not ranges:
            raise ValueError("Cannot compute a bounding range of nothing")
        return cls(min(item.start for item in ranges), max(item.end for item in ranges))


class PositionIndexer(Protocol):
    """Maps editor positions onto flat character offsets."""

    def offset_of(self, position: EditorPosition) -> int:
        ...


class LineIndex:
    """Offset table for a document, split on ``\\n``."""

    __slots__ = ("_text", "_line_starts")

    def __init__(self, text: str) -> None:
        self._text = text or ""
        starts = [0]
        cursor = self._text.find("\n")
        while cursor != -1:
            starts.append(cursor + 1)
            cursor = self._text.find("\n", cursor + 1)
        self._line_starts: tuple[int, ...] = tuple(starts)

    @property
    def text(self) -> str:
        return self._text

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    @property
    def line_starts(self) -> tuple[int, ...]:
        return self._line_starts

    def line_end(self, line: int) -> int:
        """Return the offset of the newline closing ``line`` (or EOF)."""

        line = self._clamp_line(line)
        if line + 1 < len(self._line_starts):
            return self._line_starts[line + 1] - 1
        return len(self._text)

    def offset_of(self, position: EditorPosition) -> int:
        """Return the offset for ``position``, clamping to the line and document."""

        if position.line >= len(self._line_starts):
            return len(self._text)
        start = self._line_starts[position.line]
        return min(start + position.ch, self.line_end(position.line))

    def position_of(self, offset: int) -> EditorPosition:
        offset = max(0, min(int(offset), len(self._text)))
        line = bisect_right(self._line_starts, offset) - 1
        return EditorPosition(line=line, ch=offset - self._line_starts[line])

    def slice(self, start: EditorPosition, end: EditorPosition) -> str:
        return self._text[self.offset_of(start) : self.offset_of(end)]

    def _clamp_line(self, line: int) -> int:
        return max(0, min(int(line), len(self._line_starts) - 1))


__all__ = ["EditorPosition", "EditorRange", "LineIndex", "PositionIndexer"]
