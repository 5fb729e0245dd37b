"""Core domain types: positions, range variants and uniqueness search."""

from .errors import RangeNotFoundError, ReferenceParseError
from .positions import EditorPosition, EditorRange, LineIndex, PositionIndexer
from .ranges import AnchoredRange, PositionRange, Range, UniqueSubstring, WholeDocument
from .search import AnchorPair, find_anchors, is_unique

__all__ = [
    "AnchorPair",
    "AnchoredRange",
    "EditorPosition",
    "EditorRange",
    "LineIndex",
    "PositionIndexer",
    "PositionRange",
    "Range",
    "RangeNotFoundError",
    "ReferenceParseError",
    "UniqueSubstring",
    "WholeDocument",
    "find_anchors",
    "is_unique",
]
