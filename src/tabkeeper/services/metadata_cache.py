"""Bounded cache of metadata describing recently closed tabs."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, Mapping

__all__ = ["CacheEntry", "MetadataCache", "DEFAULT_CACHE_LIMIT", "most_recent_entry"]

LOGGER = logging.getLogger(__name__)

DEFAULT_CACHE_LIMIT = 50


@dataclass(slots=True, frozen=True)
class CacheEntry:
    """Identifying metadata kept for a tab after it has been closed."""

    id: str
    title: str
    linked_content_id: str | None = None
    last_accessed_at: float | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "linked_content_id": self.linked_content_id,
            "last_accessed_at": self.last_accessed_at,
        }

    @classmethod
    def from_payload(cls, key: str, payload: Any) -> "CacheEntry | None":
        """Build an entry from a stored mapping, returning ``None`` when malformed."""

        if not isinstance(payload, Mapping):
            return None
        title = payload.get("title")
        accessed = payload.get("last_accessed_at")
        linked = payload.get("linked_content_id")
        if not isinstance(title, str):
            return None
        if isinstance(accessed, bool) or not isinstance(accessed, (int, float)):
            return None
        if linked is not None and not isinstance(linked, str):
            return None
        entry_id = payload.get("id", key)
        if not isinstance(entry_id, str) or not entry_id:
            return None
        return cls(id=entry_id, title=title, linked_content_id=linked, last_accessed_at=float(accessed))


def _recency_key(entry: CacheEntry) -> tuple[float, str]:
    return (entry.last_accessed_at or 0.0, entry.id)


def most_recent_entry(entries: Iterable[CacheEntry]) -> CacheEntry | None:
    """Return the entry with the largest ``last_accessed_at`` (ties: lowest id)."""

    best: CacheEntry | None = None
    for entry in entries:
        if best is None:
            best = entry
            continue
        stamp, best_stamp = entry.last_accessed_at or 0.0, best.last_accessed_at or 0.0
        if stamp > best_stamp or (stamp == best_stamp and entry.id < best.id):
            best = entry
    return best


class MetadataCache:
    """Map of closed tab id to :class:`CacheEntry`, capped at ``limit`` entries.

    When an insert pushes the cache past its limit, the entry with the
    smallest ``last_accessed_at`` is evicted; equal timestamps evict the
    lowest id first. The entry being recorded is never chosen as the victim
    of its own insert.
    """

    def __init__(
        self,
        *,
        limit: int = DEFAULT_CACHE_LIMIT,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if limit < 1:
            raise ValueError("Cache limit must be at least 1")
        self._limit = limit
        self._clock = clock or time.time
        self._entries: Dict[str, CacheEntry] = {}

    @property
    def limit(self) -> int:
        return self._limit

    def record(self, entry: CacheEntry) -> CacheEntry | None:
        """Upsert ``entry`` and return the evicted entry, if any."""

        if entry.last_accessed_at is None:
            entry = replace(entry, last_accessed_at=self._clock())
        self._entries[entry.id] = entry
        evicted = self._evict_overflow(keep=entry.id)
        LOGGER.debug(
            "MetadataCache.record: tab_id=%s, size=%d, evicted=%s",
            entry.id,
            len(self._entries),
            [item.id for item in evicted],
        )
        return evicted[0] if evicted else None

    def replace_all(self, entries: Mapping[str, CacheEntry]) -> list[CacheEntry]:
        """Replace the cache contents with ``entries`` and enforce the limit."""

        self._entries = {key: entry for key, entry in entries.items()}
        evicted = self._evict_overflow()
        if evicted:
            LOGGER.debug("MetadataCache.replace_all: trimmed %d entries", len(evicted))
        return evicted

    def get(self, tab_id: str) -> CacheEntry | None:
        return self._entries.get(tab_id)

    def all(self) -> dict[str, CacheEntry]:
        return dict(self._entries)

    def most_recent(self) -> CacheEntry | None:
        return most_recent_entry(self._entries.values())

    def size(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, tab_id: object) -> bool:
        return tab_id in self._entries

    def _evict_overflow(self, *, keep: str | None = None) -> list[CacheEntry]:
        evicted: list[CacheEntry] = []
        while len(self._entries) > self._limit:
            candidates = [(key, entry) for key, entry in self._entries.items() if key != keep]
            victim_key, victim = min(candidates, key=lambda item: _recency_key(item[1]))
            del self._entries[victim_key]
            evicted.append(victim)
        return evicted
