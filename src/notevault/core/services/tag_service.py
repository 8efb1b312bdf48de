"""Tag resolution, orphan cleanup and suggestions."""

import asyncio
from typing import Callable, Iterable, List, Optional, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ... import database
from ..cache import TAG_CACHE, CacheProvider, get_cache_provider
from ..logging import get_logger
from ..models.tag import Tag
from ..repositories.pagination import PageRequest
from ..repositories.tag_repository import TagRepository
from ..schemas.notes import TagListResponse, TagResponse
from .interfaces import ITagService

logger = get_logger("services.tags")

# strong references to running cleanups so they aren't garbage collected mid-flight
_background_tasks: Set[asyncio.Task] = set()


def _log_task_failure(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Orphan tag cleanup failed", exc_info=exc)


def normalize_tag_names(names: Optional[Iterable[str]]) -> List[str]:
    """Trimmed, lower-cased, de-duplicated names in first-seen order."""
    return list(dict.fromkeys(
        Tag.normalize_name(name) for name in names or () if name and name.strip()
    ))


class TagService(ITagService):
    """Tag lifecycle: resolve on write, purge when unused."""

    def __init__(
        self,
        session: AsyncSession,
        cache: Optional[CacheProvider] = None,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
    ):
        self.session = session
        self.tag_repo = TagRepository(session)
        self.cache = cache or get_cache_provider()
        self._session_factory = session_factory

    @property
    def session_factory(self) -> Callable[[], AsyncSession]:
        return self._session_factory or database.AsyncSessionLocal

    async def resolve_tags(self, names: Optional[Iterable[str]]) -> List[Tag]:
        """Existing tags for ``names`` plus newly created ones, in first-seen order."""
        normalized = normalize_tag_names(names)
        if not normalized:
            return []

        by_name = {tag.name: tag for tag in await self.tag_repo.find_by_names(normalized)}
        for name in normalized:
            if name not in by_name:
                by_name[name] = await self._create_or_reread(name)

        return [by_name[name] for name in normalized]

    async def _create_or_reread(self, name: str) -> Tag:
        try:
            return await self.tag_repo.add(name)
        except IntegrityError:
            # another request created it first
            logger.debug("Tag insert raced, re-reading %s", name)
            existing = await self.tag_repo.find_by_names([name])
            if not existing:
                raise
            return existing[0]

    async def cleanup_orphan_tags(self) -> int:
        """Delete every tag no note references. Commits its own session."""
        orphan_ids = await self.tag_repo.find_orphan_ids()
        if not orphan_ids:
            return 0
        deleted = await self.tag_repo.delete_by_ids(orphan_ids)
        await self.session.commit()
        logger.debug("Deleted %d orphan tags", deleted)
        await self.cache.clear_caches(TAG_CACHE)
        return deleted

    def cleanup_orphan_tags_async(self) -> asyncio.Task:
        """Fire-and-forget cleanup on a fresh session.

        Call after the triggering transaction has committed.
        """
        factory = self.session_factory
        cache = self.cache

        async def _run() -> int:
            async with factory() as session:
                return await TagService(session, cache=cache).cleanup_orphan_tags()

        task = asyncio.create_task(_run(), name="orphan-tag-cleanup")
        _background_tasks.add(task)
        task.add_done_callback(_log_task_failure)
        return task

    async def suggest(self, prefix: Optional[str], page: PageRequest) -> TagListResponse:
        tags, total = await self.tag_repo.find_by_prefix(prefix or "", page)
        return TagListResponse.create(
            items=[TagResponse.model_validate(tag) for tag in tags],
            total=total,
            page=page.page,
            per_page=page.per_page,
        )
