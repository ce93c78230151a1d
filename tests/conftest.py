"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from tabkeeper.events import EventBus
from tabkeeper.services.persistence import PersistenceGateway
from tabkeeper.services.storage import MemoryKeyValueStore
from tabkeeper.session import EditorSession

from tests.helpers import FakeClock, StubContentLookup


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def gateway(memory_store: MemoryKeyValueStore) -> PersistenceGateway:
    return PersistenceGateway(memory_store)


@pytest.fixture
def lookup() -> StubContentLookup:
    return StubContentLookup()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def session(
    gateway: PersistenceGateway,
    lookup: StubContentLookup,
    event_bus: EventBus,
    clock: FakeClock,
) -> EditorSession:
    return EditorSession("novel", gateway, lookup=lookup, event_bus=event_bus, clock=clock)
