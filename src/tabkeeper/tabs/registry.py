"""In-memory registry of the tabs currently open in an editing surface."""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterator, List, Mapping

from ..errors import InvalidTabUpdateError
from .models import MERGEABLE_FIELDS, Tab, TabDescriptor

__all__ = ["TabRegistry"]

LOGGER = logging.getLogger(__name__)


class TabRegistry:
    """Ordered collection of open tabs keyed by id.

    The registry only tracks membership and per-tab fields. Deciding which
    tab is active belongs to :class:`~tabkeeper.tabs.history.ActiveSelector`;
    the registry merely mirrors that decision through :meth:`mark_active`.
    """

    def __init__(self) -> None:
        self._tabs: Dict[str, Tab] = {}
        self._order: List[str] = []
        self._next_order = 0

    # ------------------------------------------------------------------
    # Tab lifecycle helpers
    # ------------------------------------------------------------------
    def open(self, descriptor: TabDescriptor, *, timestamp: float) -> Tab:
        """Insert a tab for ``descriptor`` or return the existing one with that id."""

        existing = self._tabs.get(descriptor.id)
        if existing is not None:
            LOGGER.debug("TabRegistry.open: tab_id=%s already open (order=%d)", existing.id, existing.order)
            return existing
        tab = Tab.from_descriptor(descriptor, order=self._reserve_order(), timestamp=timestamp)
        self._tabs[tab.id] = tab
        self._order.append(tab.id)
        LOGGER.debug("TabRegistry.open: tab_id=%s, kind=%s, order=%d", tab.id, tab.kind.value, tab.order)
        return tab

    def close(self, tab_id: str) -> Tab | None:
        """Remove and return the tab, or ``None`` when it is not open."""

        tab = self._tabs.pop(tab_id, None)
        if tab is None:
            LOGGER.debug("TabRegistry.close: unknown tab_id=%s", tab_id)
            return None
        self._order.remove(tab_id)
        tab.is_active = False
        LOGGER.debug("TabRegistry.close: tab_id=%s, remaining=%d", tab_id, len(self._order))
        return tab

    def update(self, tab_id: str, changes: Mapping[str, Any]) -> Tab | None:
        """Merge ``changes`` into the tab; a no-op when the tab was already closed."""

        tab = self._tabs.get(tab_id)
        if tab is None:
            LOGGER.debug("TabRegistry.update: ignoring update for closed tab_id=%s", tab_id)
            return None
        invalid = [name for name in changes if name not in MERGEABLE_FIELDS]
        if invalid:
            raise InvalidTabUpdateError(invalid)
        coerced = {name: _coerce_field(name, value) for name, value in changes.items()}
        for name, value in coerced.items():
            setattr(tab, name, value)
        return tab

    def mark_active(self, tab_id: str | None) -> None:
        """Set ``is_active`` on exactly ``tab_id`` (or on no tab when ``None``)."""

        for tab in self._tabs.values():
            tab.is_active = tab.id == tab_id

    def mark_all_saved(self) -> list[str]:
        """Clear the dirty flag on every tab and return the ids that changed."""

        changed: list[str] = []
        for tab in self.iter_tabs():
            if tab.is_dirty:
                tab.is_dirty = False
                changed.append(tab.id)
        return changed

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    def list(self) -> tuple[Tab, ...]:
        """Return a detached snapshot of the open tabs ordered by ``order``."""

        return tuple(copy.deepcopy(tab) for tab in self.iter_tabs())

    def iter_tabs(self) -> Iterator[Tab]:
        for tab_id in self._order:
            yield self._tabs[tab_id]

    def ids(self) -> tuple[str, ...]:
        return tuple(self._order)

    def get(self, tab_id: str) -> Tab | None:
        return self._tabs.get(tab_id)

    def __contains__(self, tab_id: object) -> bool:
        return tab_id in self._tabs

    def __len__(self) -> int:
        return len(self._order)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _reserve_order(self) -> int:
        value = self._next_order
        self._next_order += 1
        return value


def _coerce_field(name: str, value: Any) -> Any:
    if name == "metadata":
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise InvalidTabUpdateError([name])
        return dict(value)
    if name == "is_dirty":
        return bool(value)
    if name == "last_accessed_at":
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise InvalidTabUpdateError([name]) from exc
    return value
