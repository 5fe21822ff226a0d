from __future__ import annotations
from typing import Optional


class DocSearchError(Exception):
    """Base class for index build and lookup failures."""


class IndexBuildError(DocSearchError, ValueError):
    """Raised for bad build input (empty label, unusable key). Nothing is published."""

    def __init__(self, message: str, *, position: Optional[int] = None) -> None:
        if position is not None:
            message = f"record #{position}: {message}"
        super().__init__(message)
        self.position = position


class ShardFetchError(DocSearchError):
    """A shard (or the directory) could not be fetched from its source."""

    def __init__(self, location: str, reason: str) -> None:
        super().__init__(f"cannot fetch {location!r}: {reason}")
        self.location = location
        self.reason = reason


class IndexLoadError(DocSearchError):
    """The shard directory is missing or unreadable; the engine cannot start."""
