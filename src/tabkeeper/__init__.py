"""Tab and session state management for multi-document editors."""

from .errors import InvalidTabUpdateError, StorageError, TabKeeperError
from .events import EventBus
from .services import (
    CacheEntry,
    ContentLookup,
    FileKeyValueStore,
    MemoryKeyValueStore,
    MetadataCache,
    PersistenceGateway,
    RecoveryResolver,
    ResolvedContent,
    ResumeTarget,
    SessionSettings,
    SettingsStore,
)
from .session import EditorSession
from .tabs import ActiveSelector, Tab, TabDescriptor, TabKind, TabRegistry, chapter_tab_id

__all__ = [
    "ActiveSelector",
    "CacheEntry",
    "ContentLookup",
    "EditorSession",
    "EventBus",
    "FileKeyValueStore",
    "InvalidTabUpdateError",
    "MemoryKeyValueStore",
    "MetadataCache",
    "PersistenceGateway",
    "RecoveryResolver",
    "ResolvedContent",
    "ResumeTarget",
    "SessionSettings",
    "SettingsStore",
    "StorageError",
    "Tab",
    "TabDescriptor",
    "TabKeeperError",
    "TabKind",
    "TabRegistry",
    "chapter_tab_id",
]
