"""Event bus and the events published by editor sessions.

Views subscribe to these events instead of polling session state. Handlers
run synchronously inside the command that produced the event.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Generic, TypeVar
from weakref import WeakMethod

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all session events."""


# =============================================================================
# Tab lifecycle events
# =============================================================================


@dataclass(slots=True)
class TabOpened(Event):
    """Emitted when ``open_tab`` inserts a new tab.

    Attributes:
        tab_id: Id of the new tab.
        kind: Value of the tab's :class:`~tabkeeper.tabs.models.TabKind`.
        order: Creation order assigned by the registry.
    """

    tab_id: str
    kind: str
    order: int


@dataclass(slots=True)
class TabClosed(Event):
    """Emitted after a tab has been removed and its metadata cached.

    Attributes:
        tab_id: Id of the closed tab.
        remaining: Number of tabs still open.
    """

    tab_id: str
    remaining: int


@dataclass(slots=True)
class ActiveTabChanged(Event):
    """Emitted when the active tab changes.

    Attributes:
        tab_id: The newly active tab, or ``None`` when no tab is left.
        previous_tab_id: The tab that was active before, if any.
    """

    tab_id: str | None
    previous_tab_id: str | None = None


@dataclass(slots=True)
class TabUpdated(Event):
    """Emitted when fields were merged into an open tab."""

    tab_id: str
    fields: tuple[str, ...]


@dataclass(slots=True)
class TabsMarkedSaved(Event):
    """Emitted when dirty flags were cleared on one or more tabs."""

    tab_ids: tuple[str, ...]


# =============================================================================
# Cache events
# =============================================================================


@dataclass(slots=True)
class TabMetadataCached(Event):
    """Emitted when a closed tab was recorded in the metadata cache.

    Attributes:
        tab_id: Id of the recorded tab.
        cache_size: Number of entries after the insert.
        evicted_tab_id: Id of the entry evicted to respect the cap, if any.
    """

    tab_id: str
    cache_size: int
    evicted_tab_id: str | None = None


@dataclass(slots=True)
class CachePersisted(Event):
    """Emitted after every synchronous cache write attempt."""

    project_id: str
    entry_count: int
    success: bool


class EventBus(Generic[E]):
    """Typed publish/subscribe bus.

    Bound methods are held through :class:`weakref.WeakMethod` so a view that
    goes away stops receiving events without unsubscribing. Plain functions
    and lambdas are held strongly. Not thread-safe; sessions dispatch every
    command on a single thread.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register ``handler`` for ``event_type``. Duplicate subscriptions fire twice."""

        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed %s to %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""

        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        for index, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(index)
                logger.debug("Unsubscribed %s from %s", _handler_name(handler), event_type.__name__)
                return

    def publish(self, event: E) -> None:
        """Invoke every live handler for ``type(event)`` in subscription order.

        A handler that raises is logged and the remaining handlers still run.
        """

        event_type = type(event)
        handlers = self._handlers.get(event_type)
        if not handlers:
            logger.debug("No handlers for %s", event_type.__name__)
            return
        logger.debug("Publishing %s to %d handler(s)", event_type.__name__, len(handlers))

        dead: list[_HandlerRef] = []
        for handler_ref in list(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                dead.append(handler_ref)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised while handling %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
        for handler_ref in dead:
            handlers.remove(handler_ref)

    def clear(self) -> None:
        self._handlers.clear()

    def handler_count(self, event_type: type[E] | None = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference for anything else."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, target: WeakMethod | Handler, is_weak: bool) -> None:
        self._ref = target
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref  # type: ignore[return-value]
        return self._ref()  # type: ignore[operator]

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        return resolved is not None and resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    return getattr(handler, "__name__", repr(handler))


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "TabOpened",
    "TabClosed",
    "ActiveTabChanged",
    "TabUpdated",
    "TabsMarkedSaved",
    "TabMetadataCached",
    "CachePersisted",
]
