"""Dataclasses describing open editor tabs."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

__all__ = [
    "TabKind",
    "TabDescriptor",
    "Tab",
    "MERGEABLE_FIELDS",
    "chapter_tab_id",
]

# Fields a caller may merge into an open tab through ``update``.
MERGEABLE_FIELDS: frozenset[str] = frozenset(
    {"title", "is_dirty", "content", "metadata", "linked_content_id", "last_accessed_at"}
)

_CHAPTER_PREFIX = "chapter-"


def _now() -> float:
    return time.time()


def chapter_tab_id(content_id: str) -> str:
    """Return the conventional tab id for a chapter backed by ``content_id``."""

    return f"{_CHAPTER_PREFIX}{content_id}"


class TabKind(Enum):
    """Document kinds an editor tab can be bound to."""

    MAIN = "main"
    CHAPTER = "chapter"
    SYNOPSIS = "synopsis"
    CHARACTERS = "characters"
    STRUCTURE = "structure"
    NOTES = "notes"
    IDEAS = "ideas"

    @classmethod
    def coerce(cls, value: "TabKind | str") -> "TabKind":
        if isinstance(value, TabKind):
            return value
        return cls(str(value).strip().lower())


@dataclass(slots=True)
class TabDescriptor:
    """Caller-supplied description of a tab to open."""

    id: str
    title: str
    kind: TabKind | str = TabKind.CHAPTER
    linked_content_id: Optional[str] = None
    content: Optional[str] = None
    is_dirty: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)
    last_accessed_at: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Tab descriptors require a non-empty id")
        self.kind = TabKind.coerce(self.kind)


@dataclass(slots=True)
class Tab:
    """An open binding between the editing surface and one document."""

    id: str
    title: str
    kind: TabKind
    order: int
    linked_content_id: Optional[str] = None
    is_active: bool = False
    is_dirty: bool = False
    content: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    last_accessed_at: float = field(default_factory=_now)

    @classmethod
    def from_descriptor(cls, descriptor: TabDescriptor, *, order: int, timestamp: float) -> "Tab":
        accessed = descriptor.last_accessed_at
        return cls(
            id=descriptor.id,
            title=descriptor.title,
            kind=TabKind.coerce(descriptor.kind),
            order=order,
            linked_content_id=descriptor.linked_content_id,
            is_dirty=descriptor.is_dirty,
            content=descriptor.content,
            metadata=dict(descriptor.metadata),
            last_accessed_at=timestamp if accessed is None else float(accessed),
        )

    def touch(self, timestamp: float | None = None) -> None:
        """Refresh ``last_accessed_at``; called whenever the tab becomes active."""

        self.last_accessed_at = _now() if timestamp is None else timestamp
