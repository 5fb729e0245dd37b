"""Exceptions raised while parsing or re-locating embed references."""

from __future__ import annotations

from typing import Any


class ReferenceParseError(ValueError):
    """Raised when a serialized reference does not follow the wire grammar."""

    def __init__(self, message: str, *, reason: str = "malformed", fragment: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.fragment = fragment

    def details(self) -> dict[str, str | None]:
        return {"reason": self.reason, "fragment": self.fragment}


class RangeNotFoundError(LookupError):
    """Raised when a reference cannot be re-located in the given document."""

    def __init__(self, message: str, *, reason: str = "not_found", range: Any = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.range = range

    def details(self) -> dict[str, Any]:
        return {"reason": self.reason, "range": self.range}


__all__ = ["RangeNotFoundError", "ReferenceParseError"]
