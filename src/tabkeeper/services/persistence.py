"""Load/save of the per-project metadata cache blob."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from .metadata_cache import CacheEntry
from .storage import KeyValueStore

__all__ = ["PersistenceGateway", "DEFAULT_KEY_PREFIX"]

LOGGER = logging.getLogger(__name__)
DEFAULT_KEY_PREFIX = "tab_metadata_cache_"


class PersistenceGateway:
    """Serializes the closed-tab cache of a project into a key-value store.

    The stored blob is a single JSON object mapping tab id to
    ``{id, title, linked_content_id, last_accessed_at}``. Neither method
    raises: read failures yield an empty map and write failures return
    ``False``, both with a warning in the log.
    """

    def __init__(self, store: KeyValueStore, *, key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        self._store = store
        self._key_prefix = key_prefix

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def namespace_key(self, project_id: str) -> str:
        return f"{self._key_prefix}{project_id}"

    def save(self, project_id: str, snapshot: Mapping[str, CacheEntry]) -> bool:
        key = self.namespace_key(project_id)
        try:
            payload = {tab_id: entry.to_payload() for tab_id, entry in snapshot.items()}
            body = json.dumps(payload, sort_keys=True).encode("utf-8")
            self._store.save(key, body)
        except Exception as exc:
            LOGGER.warning("Failed to save tab metadata cache for project %s: %s", project_id, exc)
            return False
        LOGGER.debug(
            "PersistenceGateway.save: project=%s, entries=%d, keys=%s",
            project_id,
            len(payload),
            sorted(payload),
        )
        return True

    def load(self, project_id: str) -> dict[str, CacheEntry]:
        key = self.namespace_key(project_id)
        try:
            raw = self._store.load(key)
        except Exception as exc:
            LOGGER.warning("Failed to read tab metadata cache for project %s: %s", project_id, exc)
            return {}
        if raw is None:
            LOGGER.debug("PersistenceGateway.load: no cache stored for project=%s", project_id)
            return {}
        payload = self._decode(project_id, raw)
        entries = _coerce_entries(project_id, payload)
        LOGGER.debug("PersistenceGateway.load: project=%s, entries=%d", project_id, len(entries))
        return entries

    def _decode(self, project_id: str, raw: bytes) -> Mapping[str, Any]:
        try:
            data = json.loads(raw.decode("utf-8"))
        except (ValueError, RecursionError) as exc:
            LOGGER.warning("Tab metadata cache for project %s is not valid JSON: %s", project_id, exc)
            return {}
        if not isinstance(data, Mapping):
            LOGGER.warning(
                "Tab metadata cache for project %s has unexpected type %s",
                project_id,
                type(data).__name__,
            )
            return {}
        return data


def _coerce_entries(project_id: str, payload: Mapping[str, Any]) -> dict[str, CacheEntry]:
    result: dict[str, CacheEntry] = {}
    for key, value in payload.items():
        entry = CacheEntry.from_payload(key, value) if isinstance(key, str) else None
        if entry is None:
            LOGGER.warning("Skipping malformed cache entry %r for project %s", key, project_id)
            continue
        result[entry.id] = entry
    return result
