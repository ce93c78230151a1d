"""Unit tests for :mod:`tabkeeper.events`."""

from __future__ import annotations

import gc
import logging

import pytest

from tabkeeper.events import ActiveTabChanged, Event, EventBus, TabClosed, TabOpened


class TestEventBusSubscription:
    """Tests for EventBus subscription functionality."""

    def test_subscribe_adds_handler(self) -> None:
        bus: EventBus[Event] = EventBus()

        bus.subscribe(TabOpened, lambda event: None)

        assert bus.handler_count(TabOpened) == 1

    def test_subscribe_same_handler_twice(self) -> None:
        """Subscribing the same handler twice results in two invocations."""
        bus: EventBus[Event] = EventBus()
        received: list[Event] = []

        def handler(event: TabOpened) -> None:
            received.append(event)

        bus.subscribe(TabOpened, handler)
        bus.subscribe(TabOpened, handler)
        bus.publish(TabOpened(tab_id="a", kind="chapter", order=0))

        assert len(received) == 2

    def test_unsubscribe_removes_first_registration(self) -> None:
        bus: EventBus[Event] = EventBus()

        def handler(event: TabOpened) -> None:
            pass

        bus.subscribe(TabOpened, handler)
        bus.subscribe(TabOpened, handler)
        bus.unsubscribe(TabOpened, handler)

        assert bus.handler_count(TabOpened) == 1

    def test_unsubscribe_unknown_handler_is_safe(self) -> None:
        bus: EventBus[Event] = EventBus()

        bus.unsubscribe(TabClosed, lambda event: None)

        assert bus.handler_count() == 0


class TestEventBusPublish:
    """Tests for EventBus publish functionality."""

    def test_publish_only_reaches_matching_type(self) -> None:
        bus: EventBus[Event] = EventBus()
        opened: list[Event] = []
        closed: list[Event] = []
        bus.subscribe(TabOpened, opened.append)
        bus.subscribe(TabClosed, closed.append)

        bus.publish(TabClosed(tab_id="a", remaining=0))

        assert opened == []
        assert closed == [TabClosed(tab_id="a", remaining=0)]

    def test_publish_invokes_handlers_in_order(self) -> None:
        bus: EventBus[Event] = EventBus()
        calls: list[str] = []
        bus.subscribe(ActiveTabChanged, lambda event: calls.append("first"))
        bus.subscribe(ActiveTabChanged, lambda event: calls.append("second"))

        bus.publish(ActiveTabChanged(tab_id=None))

        assert calls == ["first", "second"]

    def test_publish_continues_after_handler_exception(self, caplog: pytest.LogCaptureFixture) -> None:
        bus: EventBus[Event] = EventBus()
        calls: list[str] = []

        def broken(event: TabOpened) -> None:
            raise RuntimeError("boom")

        bus.subscribe(TabOpened, broken)
        bus.subscribe(TabOpened, lambda event: calls.append(event.tab_id))

        with caplog.at_level(logging.ERROR, logger="tabkeeper.events"):
            bus.publish(TabOpened(tab_id="a", kind="notes", order=3))

        assert calls == ["a"]
        assert "broken" in caplog.text

    def test_publish_without_handlers_is_safe(self) -> None:
        EventBus().publish(TabClosed(tab_id="a", remaining=0))


class TestEventBusWeakReferences:
    """Bound methods are held weakly."""

    def test_bound_method_handler_cleaned_up_on_gc(self) -> None:
        bus: EventBus[Event] = EventBus()

        class View:
            def __init__(self) -> None:
                self.seen: list[Event] = []

            def on_closed(self, event: TabClosed) -> None:
                self.seen.append(event)

        view = View()
        bus.subscribe(TabClosed, view.on_closed)
        bus.publish(TabClosed(tab_id="a", remaining=1))
        assert len(view.seen) == 1

        del view
        gc.collect()
        bus.publish(TabClosed(tab_id="b", remaining=0))

        assert bus.handler_count(TabClosed) == 0

    def test_clear_removes_all_handlers(self) -> None:
        bus: EventBus[Event] = EventBus()
        bus.subscribe(TabOpened, lambda event: None)
        bus.subscribe(TabClosed, lambda event: None)

        bus.clear()

        assert bus.handler_count() == 0
