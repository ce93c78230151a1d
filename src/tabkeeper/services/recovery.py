"""Resume suggestions for when every tab of a project has been closed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..tabs.models import chapter_tab_id
from .metadata_cache import CacheEntry, MetadataCache, most_recent_entry
from .persistence import PersistenceGateway

__all__ = ["ContentLookup", "ResolvedContent", "ResumeTarget", "RecoveryResolver"]

LOGGER = logging.getLogger(__name__)

SOURCE_STORAGE = "storage"
SOURCE_MEMORY = "memory"


@dataclass(slots=True, frozen=True)
class ResolvedContent:
    """Live data returned by the content store for a cached reference."""

    title: str
    content: str | None = None


@runtime_checkable
class ContentLookup(Protocol):
    """Looks up whether a content entity still exists in the project store."""

    def resolve(self, content_id: str) -> ResolvedContent | None:  # pragma: no cover - protocol
        ...


@dataclass(slots=True, frozen=True)
class ResumeTarget:
    """Suggestion describing the document a user can resume.

    Attributes:
        title: Title to show; the live title when the content still exists.
        linked_content_id: Content entity backing the suggestion, if any.
        tab_id: Id a reopened tab should use.
        stale: ``True`` when the linked content could not be resolved.
        source: ``"storage"`` or ``"memory"`` depending on which cache answered.
    """

    title: str
    linked_content_id: str | None
    tab_id: str
    stale: bool = False
    source: str = SOURCE_STORAGE


class RecoveryResolver:
    """Builds a resume suggestion from the persisted and in-memory caches."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        cache: MetadataCache,
        lookup: ContentLookup | None = None,
        *,
        cache_project_id: str | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            gateway: Persistence holding each project's closed-tab cache.
            cache: In-memory cache consulted when storage has nothing.
            lookup: Content store used to verify cached references.
            cache_project_id: Project owning ``cache``; the in-memory fallback
                only answers for this project.
        """
        self._gateway = gateway
        self._cache = cache
        self._lookup = lookup
        self._cache_project_id = cache_project_id

    def suggest_resume_target(self, project_id: str) -> ResumeTarget | None:
        candidate = most_recent_entry(self._gateway.load(project_id).values())
        source = SOURCE_STORAGE
        if candidate is None and project_id == self._cache_project_id:
            candidate = self._cache.most_recent()
            source = SOURCE_MEMORY
        if candidate is None:
            LOGGER.debug("RecoveryResolver: no cached tabs for project=%s", project_id)
            return None
        target = self._resolve_candidate(candidate, source)
        LOGGER.info(
            "Resume suggestion for project %s: %r (tab_id=%s, source=%s, stale=%s)",
            project_id,
            target.title,
            target.tab_id,
            target.source,
            target.stale,
        )
        return target

    def _resolve_candidate(self, entry: CacheEntry, source: str) -> ResumeTarget:
        content_id = entry.linked_content_id
        lookup = self._lookup
        if content_id is None or lookup is None:
            return ResumeTarget(
                title=entry.title,
                linked_content_id=content_id,
                tab_id=entry.id,
                source=source,
            )
        live = _lookup_content(lookup, content_id)
        if live is None:
            LOGGER.warning("Content %s is no longer available, using cached metadata", content_id)
            return ResumeTarget(
                title=entry.title,
                linked_content_id=content_id,
                tab_id=entry.id,
                stale=True,
                source=source,
            )
        return ResumeTarget(
            title=live.title or entry.title,
            linked_content_id=content_id,
            tab_id=chapter_tab_id(content_id),
            source=source,
        )


def _lookup_content(lookup: ContentLookup, content_id: str) -> ResolvedContent | None:
    try:
        return lookup.resolve(content_id)
    except Exception as exc:
        LOGGER.warning("Content lookup for %s failed: %s", content_id, exc)
        return None
