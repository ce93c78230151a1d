"""Tab models, the open-tab registry and MRU-based active selection."""

from .history import DEFAULT_HISTORY_LIMIT, ActiveSelector, find_next_active_tab
from .models import Tab, TabDescriptor, TabKind, chapter_tab_id
from .registry import TabRegistry

__all__ = [
    "ActiveSelector",
    "DEFAULT_HISTORY_LIMIT",
    "Tab",
    "TabDescriptor",
    "TabKind",
    "TabRegistry",
    "chapter_tab_id",
    "find_next_active_tab",
]
