"""Service layer helpers (metadata cache, persistence, recovery, settings)."""

from .metadata_cache import DEFAULT_CACHE_LIMIT, CacheEntry, MetadataCache
from .persistence import DEFAULT_KEY_PREFIX, PersistenceGateway
from .recovery import ContentLookup, RecoveryResolver, ResolvedContent, ResumeTarget
from .settings import SessionSettings, SettingsStore
from .storage import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore

__all__ = [
    "CacheEntry",
    "ContentLookup",
    "DEFAULT_CACHE_LIMIT",
    "DEFAULT_KEY_PREFIX",
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "MetadataCache",
    "PersistenceGateway",
    "RecoveryResolver",
    "ResolvedContent",
    "ResumeTarget",
    "SessionSettings",
    "SettingsStore",
]
