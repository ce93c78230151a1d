"""Tests for :mod:`tabkeeper.tabs.registry`."""

from __future__ import annotations

import pytest

from tabkeeper.errors import InvalidTabUpdateError
from tabkeeper.tabs.models import TabDescriptor, TabKind, chapter_tab_id
from tabkeeper.tabs.registry import TabRegistry

from tests.helpers import chapter


@pytest.fixture
def registry() -> TabRegistry:
    return TabRegistry()


class TestOpen:
    def test_open_assigns_increasing_order(self, registry: TabRegistry) -> None:
        a = registry.open(chapter("a"), timestamp=1.0)
        b = registry.open(chapter("b"), timestamp=2.0)
        c = registry.open(chapter("c"), timestamp=3.0)

        assert [a.order, b.order, c.order] == [0, 1, 2]
        assert registry.ids() == ("a", "b", "c")

    def test_open_existing_id_returns_same_tab(self, registry: TabRegistry) -> None:
        first = registry.open(chapter("a"), timestamp=1.0)
        again = registry.open(chapter("a", title="Renamed"), timestamp=5.0)

        assert again is first
        assert again.title == "A"
        assert len(registry) == 1
        assert registry.open(chapter("b"), timestamp=6.0).order == 1

    def test_order_is_never_reused_after_close(self, registry: TabRegistry) -> None:
        registry.open(chapter("a"), timestamp=1.0)
        registry.open(chapter("b"), timestamp=2.0)
        registry.close("b")

        reopened = registry.open(chapter("b"), timestamp=3.0)

        assert reopened.order == 2

    def test_open_uses_descriptor_timestamp_when_given(self, registry: TabRegistry) -> None:
        descriptor = TabDescriptor(id="n1", title="Notes", kind="notes", last_accessed_at=42.0)

        tab = registry.open(descriptor, timestamp=99.0)

        assert tab.kind is TabKind.NOTES
        assert tab.last_accessed_at == 42.0

    def test_descriptor_requires_id(self) -> None:
        with pytest.raises(ValueError):
            TabDescriptor(id="", title="Nothing")

    def test_unknown_kind_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            TabDescriptor(id="x", title="X", kind="spreadsheet")


class TestClose:
    def test_close_returns_removed_tab(self, registry: TabRegistry) -> None:
        registry.open(chapter("a"), timestamp=1.0)
        registry.open(chapter("b"), timestamp=2.0)

        closed = registry.close("a")

        assert closed is not None and closed.id == "a"
        assert "a" not in registry
        assert registry.ids() == ("b",)

    def test_close_unknown_is_noop(self, registry: TabRegistry) -> None:
        registry.open(chapter("a"), timestamp=1.0)

        assert registry.close("missing") is None
        assert registry.ids() == ("a",)


class TestUpdate:
    def test_update_merges_fields(self, registry: TabRegistry) -> None:
        registry.open(chapter("a"), timestamp=1.0)

        tab = registry.update("a", {"content": "Once upon", "is_dirty": True, "metadata": {"sub": "x"}})

        assert tab is not None
        assert tab.content == "Once upon"
        assert tab.is_dirty is True
        assert tab.metadata == {"sub": "x"}

    def test_update_after_close_is_noop(self, registry: TabRegistry) -> None:
        registry.open(chapter("a"), timestamp=1.0)
        registry.close("a")

        assert registry.update("a", {"is_dirty": True}) is None

    @pytest.mark.parametrize("field", ["id", "order", "is_active", "kind"])
    def test_update_rejects_identity_fields(self, registry: TabRegistry, field: str) -> None:
        registry.open(chapter("a"), timestamp=1.0)

        with pytest.raises(InvalidTabUpdateError):
            registry.update("a", {field: "x"})

    def test_update_after_close_ignores_unknown_fields(self, registry: TabRegistry) -> None:
        registry.open(chapter("a"), timestamp=1.0)
        registry.close("a")

        assert registry.update("a", {"order": 5}) is None

    @pytest.mark.parametrize(
        "changes",
        [{"last_accessed_at": None}, {"last_accessed_at": "soon"}, {"metadata": ["not", "a", "dict"]}],
    )
    def test_update_rejects_bad_values(self, registry: TabRegistry, changes: dict) -> None:
        registry.open(chapter("a"), timestamp=1.0)

        with pytest.raises(InvalidTabUpdateError):
            registry.update("a", {"is_dirty": True, **changes})

        tab = registry.get("a")
        assert tab is not None
        assert tab.is_dirty is False
        assert tab.last_accessed_at == 1.0


class TestQueries:
    def test_list_returns_detached_copies(self, registry: TabRegistry) -> None:
        registry.open(chapter("a"), timestamp=1.0)

        snapshot = registry.list()
        snapshot[0].title = "Mutated"

        assert registry.get("a").title == "A"

    def test_mark_active_sets_single_flag(self, registry: TabRegistry) -> None:
        for name in ("a", "b", "c"):
            registry.open(chapter(name), timestamp=1.0)

        registry.mark_active("b")
        assert [tab.is_active for tab in registry.iter_tabs()] == [False, True, False]

        registry.mark_active(None)
        assert not any(tab.is_active for tab in registry.iter_tabs())

    def test_mark_all_saved_reports_changed_ids(self, registry: TabRegistry) -> None:
        registry.open(chapter("a"), timestamp=1.0)
        registry.open(chapter("b"), timestamp=1.0)
        registry.update("b", {"is_dirty": True})

        assert registry.mark_all_saved() == ["b"]
        assert registry.mark_all_saved() == []


def test_chapter_tab_id_convention() -> None:
    assert chapter_tab_id("42") == "chapter-42"
