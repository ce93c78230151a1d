"""Shared test helpers and stub collaborators.

Import from here instead of redefining clocks or content stores in
individual test modules.
"""

from __future__ import annotations

from tabkeeper.services.recovery import ResolvedContent
from tabkeeper.tabs.models import TabDescriptor, TabKind


class FakeClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: float = 1_000.0, step: float = 1.0) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


class StubContentLookup:
    """In-memory content store keyed by content id."""

    def __init__(self, contents: dict[str, ResolvedContent] | None = None) -> None:
        self.contents = dict(contents or {})
        self.calls: list[str] = []

    def resolve(self, content_id: str) -> ResolvedContent | None:
        self.calls.append(content_id)
        return self.contents.get(content_id)


class FailingStore:
    """Key-value store whose every operation raises ``OSError``."""

    def load(self, key: str) -> bytes | None:
        raise OSError(f"cannot read {key}")

    def save(self, key: str, data: bytes) -> None:
        raise OSError(f"cannot write {key}")


class BrokenStore:
    """Key-value store failing with errors other than ``OSError``."""

    def load(self, key: str) -> bytes | None:
        raise RuntimeError(f"backend offline while reading {key}")

    def save(self, key: str, data: bytes) -> None:
        raise RuntimeError(f"backend offline while writing {key}")


def chapter(tab_id: str, title: str | None = None, content_id: str | None = None) -> TabDescriptor:
    """Return a chapter descriptor; ``content_id`` defaults to the tab id."""

    return TabDescriptor(
        id=tab_id,
        title=title or tab_id.title(),
        kind=TabKind.CHAPTER,
        linked_content_id=content_id or tab_id,
    )
