"""Active tab selection backed by a most-recently-used history."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

__all__ = ["ActiveSelector", "find_next_active_tab", "DEFAULT_HISTORY_LIMIT"]

LOGGER = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10


def find_next_active_tab(history: Iterable[str], remaining: Sequence[str]) -> str | None:
    """Pick the tab that should become active after the active one closes.

    Walks ``history`` most-recent-first and returns the first id still present
    in ``remaining``. Falls back to the first remaining tab, and to ``None``
    when nothing is left open.
    """

    if not remaining:
        LOGGER.debug("find_next_active_tab: no tabs remaining")
        return None
    open_ids = set(remaining)
    for candidate in history:
        if candidate in open_ids:
            LOGGER.debug("find_next_active_tab: history hit %s", candidate)
            return candidate
    LOGGER.debug("find_next_active_tab: history exhausted, using first tab %s", remaining[0])
    return remaining[0]


class ActiveSelector:
    """Owns ``active_tab_id`` and the capped MRU history of previously active tabs.

    The history never contains duplicates and never contains the active tab
    itself. It is only a tie-break source; the registry remains the source of
    truth for which tabs exist.
    """

    def __init__(self, *, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self._limit = limit
        self._active_tab_id: str | None = None
        self._history: list[str] = []

    @property
    def active_tab_id(self) -> str | None:
        return self._active_tab_id

    @property
    def history(self) -> tuple[str, ...]:
        return tuple(self._history)

    @property
    def limit(self) -> int:
        return self._limit

    def activate(self, tab_id: str) -> bool:
        """Make ``tab_id`` active, pushing the previous active id onto the history.

        Returns ``False`` when ``tab_id`` was already active.
        """

        previous = self._active_tab_id
        if previous == tab_id:
            return False
        history = [entry for entry in self._history if entry != tab_id and entry != previous]
        if previous is not None:
            history.insert(0, previous)
        self._history = history[: self._limit]
        self._active_tab_id = tab_id
        LOGGER.debug(
            "ActiveSelector.activate: %s -> %s, history=%s", previous, tab_id, self._history
        )
        return True

    def on_tab_closed(self, closed_id: str, remaining: Sequence[str]) -> str | None:
        """Purge ``closed_id`` and, if it was active, choose its replacement.

        ``remaining`` lists the ids still open, in registry order. Returns the
        active tab id after the close.
        """

        self._history = [entry for entry in self._history if entry != closed_id]
        if self._active_tab_id != closed_id:
            return self._active_tab_id
        replacement = find_next_active_tab(self._history, remaining)
        if replacement is not None:
            self._history = [entry for entry in self._history if entry != replacement]
        self._active_tab_id = replacement
        LOGGER.debug(
            "ActiveSelector.on_tab_closed: closed=%s, active=%s, history=%s",
            closed_id,
            replacement,
            self._history,
        )
        return replacement

    def reset(self) -> None:
        self._active_tab_id = None
        self._history = []
