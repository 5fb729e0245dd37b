"""Uniqueness checks and shortest-anchor search over document text."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class AnchorPair:
    """Shortest prefix/suffix of a needle that pin down its occurrence."""

    start: str
    end: str
    needle: str

    @property
    def collapsed(self) -> bool:
        """Return ``True`` when one anchor already spans the whole needle."""

        return self.start == self.needle or self.end == self.needle


def count_occurrences(document: str, needle: str, *, limit: int | None = None) -> int:
    """Count (possibly overlapping) occurrences, stopping early at ``limit``."""

    _require_needle(needle)
    count = 0
    cursor = document.find(needle)
    while cursor != -1:
        count += 1
        if limit is not None and count >= limit:
            break
        cursor = document.find(needle, cursor + 1)
    return count


def is_unique(document: str, needle: str) -> bool:
    """Return ``True`` when ``needle`` occurs in ``document`` exactly once."""

    return count_occurrences(document, needle, limit=2) == 1


def find_anchors(document: str, needle: str, offset: int | None = None) -> AnchorPair:
    """Return the shortest unique start and end anchors for ``needle``.

    ``offset`` is where the needle actually sits in ``document``; it defaults
    to the first occurrence. The start anchor is the shortest prefix that no
    other position in the document starts, and the end anchor is the shortest
    suffix that no other position ends. Either anchor falls back to the full
    needle when no shorter one is unique, so the search is bounded by the
    needle length. Callers must still check a collapsed pair with
    :func:`is_unique`.
    """

    _require_needle(needle)
    if offset is None:
        offset = document.find(needle)
        if offset == -1:
            raise ValueError("Needle does not occur in the document")
    elif document[offset : offset + len(needle)] != needle:
        raise ValueError(f"Needle does not occur at offset {offset}")

    start_anchor = needle
    for length in range(1, len(needle) + 1):
        prefix = needle[:length]
        if _only_occurrence_at(document, prefix, offset):
            start_anchor = prefix
            break

    end = offset + len(needle)
    end_anchor = needle
    for length in range(1, len(needle) + 1):
        suffix = needle[-length:]
        if _only_occurrence_at(document, suffix, end - length):
            end_anchor = suffix
            break

    return AnchorPair(start=start_anchor, end=end_anchor, needle=needle)


def _only_occurrence_at(document: str, fragment: str, position: int) -> bool:
    first = document.find(fragment)
    if first != position:
        return False
    return document.find(fragment, first + 1) == -1


def _require_needle(needle: str) -> None:
    if not needle:
        raise ValueError("Search needle must be a non-empty string")


__all__ = ["AnchorPair", "count_occurrences", "find_anchors", "is_unique"]
