"""Error types raised by the tab session core.

Most failure modes in this package are absorbed (unknown tab ids, storage
hiccups). The classes below cover the cases that indicate a programming
error on the caller's side or a storage failure that the persistence layer
needs to catch and log.
"""

from __future__ import annotations

__all__ = ["TabKeeperError", "InvalidTabUpdateError", "StorageError"]


class TabKeeperError(Exception):
    """Base class for all tabkeeper errors."""


class InvalidTabUpdateError(TabKeeperError, ValueError):
    """Raised when an update names a field that cannot be merged or a value of the wrong type."""

    def __init__(self, fields: list[str] | tuple[str, ...]) -> None:
        self.fields = tuple(sorted(fields))
        super().__init__(f"Tab fields cannot be updated: {', '.join(self.fields)}")


class StorageError(TabKeeperError):
    """Raised by key-value stores when the backing medium fails."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"{key}: {message}")
