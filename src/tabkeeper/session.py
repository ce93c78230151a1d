"""Editor session domain manager.

Coordinates the tab registry, the MRU-based active selection, the closed-tab
metadata cache and its persistence for a single project. This is the command
surface consumed by views; every state change goes through it so events are
emitted and the cache is written in the same call that closed the tab.
"""

from __future__ import annotations

import copy
import logging
import time
from typing import Any, Callable, Mapping

from .events import (
    ActiveTabChanged,
    CachePersisted,
    EventBus,
    TabClosed,
    TabMetadataCached,
    TabOpened,
    TabsMarkedSaved,
    TabUpdated,
)
from .services.metadata_cache import CacheEntry, MetadataCache
from .services.persistence import PersistenceGateway
from .services.recovery import ContentLookup, RecoveryResolver, ResumeTarget
from .services.settings import SessionSettings, SettingsStore
from .services.storage import FileKeyValueStore
from .tabs.history import ActiveSelector
from .tabs.models import Tab, TabDescriptor, TabKind
from .tabs.registry import TabRegistry

__all__ = ["EditorSession"]

LOGGER = logging.getLogger(__name__)


class EditorSession:
    """Open/closed/active bookkeeping for the tabs of one project.

    One instance is created per project session and handed to the views that
    need it. Commands run to completion before returning; none of them raise
    for unknown tab ids.

    Events Emitted:
        - TabOpened: When ``open_tab`` inserts a new tab
        - ActiveTabChanged: When the active tab changes (including to ``None``)
        - TabUpdated: When fields were merged into a tab
        - TabMetadataCached / CachePersisted / TabClosed: When a tab closes
        - TabsMarkedSaved: When dirty flags were cleared
    """

    def __init__(
        self,
        project_id: str,
        gateway: PersistenceGateway,
        *,
        lookup: ContentLookup | None = None,
        settings: SessionSettings | None = None,
        event_bus: EventBus | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            project_id: Project whose tabs this session tracks.
            gateway: Persistence for the project's closed-tab cache.
            lookup: Content store used to validate resume suggestions.
            settings: Limits and startup behavior; defaults when omitted.
            event_bus: Bus receiving session events; a private one when omitted.
            clock: Returns the current time in epoch seconds.
        """
        self._project_id = project_id
        self._settings = settings or SessionSettings()
        self._clock = clock or time.time
        self._bus = event_bus or EventBus()
        self._gateway = gateway
        self._registry = TabRegistry()
        self._selector = ActiveSelector(limit=self._settings.history_limit)
        self._cache = MetadataCache(limit=self._settings.cache_limit, clock=self._clock)
        self._resolver = RecoveryResolver(gateway, self._cache, lookup, cache_project_id=project_id)

        if self._settings.hydrate_on_start:
            self.reload_cache()

    @classmethod
    def for_project(
        cls,
        project_id: str,
        *,
        settings: SessionSettings | None = None,
        lookup: ContentLookup | None = None,
        event_bus: EventBus | None = None,
    ) -> "EditorSession":
        """Build a session persisting its cache under ``settings.storage_dir``.

        Settings are read through :class:`SettingsStore` (file plus
        ``TABKEEPER_*`` environment overrides) when none are passed.
        """

        active_settings = settings or SettingsStore().load()
        store = FileKeyValueStore(active_settings.storage_path())
        gateway = PersistenceGateway(store, key_prefix=active_settings.key_prefix)
        return cls(
            project_id,
            gateway,
            lookup=lookup,
            settings=active_settings,
            event_bus=event_bus,
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def open_tab(self, descriptor: TabDescriptor) -> Tab:
        """Open (or re-activate) the tab described by ``descriptor``.

        Opening an id that is already open activates the existing tab and
        leaves its ``order`` untouched.
        """
        if descriptor.id in self._registry:
            LOGGER.debug("EditorSession.open_tab: tab_id=%s already open, activating", descriptor.id)
            self.activate_tab(descriptor.id)
            return self._snapshot(descriptor.id)

        tab = self._registry.open(descriptor, timestamp=self._clock())
        LOGGER.debug(
            "EditorSession.open_tab: project=%s, tab_id=%s, order=%d",
            self._project_id,
            tab.id,
            tab.order,
        )
        self._bus.publish(TabOpened(tab_id=tab.id, kind=tab.kind.value, order=tab.order))
        self._set_active(tab.id, touch=False)
        return self._snapshot(tab.id)

    def close_tab(self, tab_id: str) -> None:
        """Close ``tab_id``, caching its metadata and persisting the cache before returning."""

        tab = self._registry.close(tab_id)
        if tab is None:
            LOGGER.debug("EditorSession.close_tab: unknown tab_id=%s", tab_id)
            return

        previous_active = self._selector.active_tab_id
        entry = CacheEntry(
            id=tab.id,
            title=tab.title,
            linked_content_id=tab.linked_content_id,
            last_accessed_at=tab.last_accessed_at,
        )
        evicted = self._cache.record(entry)
        new_active = self._selector.on_tab_closed(tab_id, self._registry.ids())
        self._registry.mark_active(new_active)
        if new_active is not None and new_active != previous_active:
            replacement = self._registry.get(new_active)
            if replacement is not None:
                replacement.touch(self._clock())

        persisted = self._gateway.save(self._project_id, self._cache.all())

        LOGGER.debug(
            "EditorSession.close_tab: tab_id=%s, active=%s, cache_size=%d, persisted=%s",
            tab_id,
            new_active,
            len(self._cache),
            persisted,
        )
        self._bus.publish(
            TabMetadataCached(
                tab_id=tab_id,
                cache_size=len(self._cache),
                evicted_tab_id=evicted.id if evicted else None,
            )
        )
        self._bus.publish(
            CachePersisted(project_id=self._project_id, entry_count=len(self._cache), success=persisted)
        )
        self._bus.publish(TabClosed(tab_id=tab_id, remaining=len(self._registry)))
        if new_active != previous_active:
            self._bus.publish(ActiveTabChanged(tab_id=new_active, previous_tab_id=previous_active))

    def activate_tab(self, tab_id: str) -> None:
        """Make ``tab_id`` the active tab; ignored when the tab is not open."""

        if tab_id not in self._registry:
            LOGGER.debug("EditorSession.activate_tab: unknown tab_id=%s", tab_id)
            return
        self._set_active(tab_id, touch=True)

    def update_tab(self, tab_id: str, changes: Mapping[str, Any]) -> None:
        """Merge ``changes`` into an open tab; ignored when the tab was closed."""

        tab = self._registry.update(tab_id, changes)
        if tab is None:
            return
        self._bus.publish(TabUpdated(tab_id=tab_id, fields=tuple(sorted(changes))))

    def mark_all_saved(self) -> None:
        """Clear the dirty flag on every open tab."""

        changed = self._registry.mark_all_saved()
        LOGGER.debug("EditorSession.mark_all_saved: %d tab(s) cleared", len(changed))
        if changed:
            self._bus.publish(TabsMarkedSaved(tab_ids=tuple(changed)))

    def request_recovery(self, project_id: str | None = None) -> ResumeTarget | None:
        """Suggest the document to resume, or ``None`` for a plain start state."""

        return self._resolver.suggest_resume_target(project_id or self._project_id)

    def resume_last(self) -> Tab | None:
        """Reopen the tab suggested by :meth:`request_recovery` as a chapter tab."""

        target = self.request_recovery()
        if target is None:
            return None
        return self.open_tab(
            TabDescriptor(
                id=target.tab_id,
                title=target.title,
                kind=TabKind.CHAPTER,
                linked_content_id=target.linked_content_id,
            )
        )

    def reload_cache(self) -> int:
        """Replace the in-memory cache with the persisted one; returns the entry count."""

        entries = self._gateway.load(self._project_id)
        self._cache.replace_all(entries)
        LOGGER.debug(
            "EditorSession.reload_cache: project=%s, entries=%d", self._project_id, len(self._cache)
        )
        return len(self._cache)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def active_tab_id(self) -> str | None:
        return self._selector.active_tab_id

    @property
    def active_tab(self) -> Tab | None:
        active_id = self._selector.active_tab_id
        return None if active_id is None else self._snapshot(active_id)

    @property
    def history(self) -> tuple[str, ...]:
        return self._selector.history

    @property
    def is_empty(self) -> bool:
        return len(self._registry) == 0

    def tabs(self) -> tuple[Tab, ...]:
        return self._registry.list()

    def tab_ids(self) -> tuple[str, ...]:
        return self._registry.ids()

    def get_tab(self, tab_id: str) -> Tab | None:
        return self._snapshot(tab_id) if tab_id in self._registry else None

    @property
    def metadata_cache(self) -> dict[str, CacheEntry]:
        """Copy of the closed-tab cache keyed by tab id."""

        return self._cache.all()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _set_active(self, tab_id: str, *, touch: bool) -> None:
        previous = self._selector.active_tab_id
        changed = self._selector.activate(tab_id)
        tab = self._registry.get(tab_id)
        if touch and tab is not None:
            tab.touch(self._clock())
        if not changed:
            return
        self._registry.mark_active(tab_id)
        self._bus.publish(ActiveTabChanged(tab_id=tab_id, previous_tab_id=previous))

    def _snapshot(self, tab_id: str) -> Tab:
        tab = self._registry.get(tab_id)
        if tab is None:  # pragma: no cover - callers check membership first
            raise KeyError(f"Unknown tab_id: {tab_id}")
        return copy.deepcopy(tab)
