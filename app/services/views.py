"""Detached view-count increments."""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.database import transaction
from app.monitoring.logging import get_logger
from app.repositories.blog import BlogRepository

logger = get_logger(__name__)


class ViewCounter:
    """
    Bumps view counts in background tasks on their own sessions.

    The request that triggers an increment never waits on it. A failure is
    logged from the task's done-callback and goes no further.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        # Strong references keep in-flight tasks from being collected
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, blog_id: int) -> asyncio.Task[None]:
        """
        Start an increment and return without awaiting it.

        Args:
            blog_id: Blog whose view count to bump

        Returns:
            asyncio.Task[None]: The detached task
        """
        task = asyncio.create_task(self._increment(blog_id), name=f"blog-views-{blog_id}")
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    async def _increment(self, blog_id: int) -> None:
        async with transaction(self.session_factory) as session:
            await BlogRepository(session).increment_views(blog_id)

    def _finished(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("View increment cancelled", task=task.get_name())
            return
        if (error := task.exception()) is not None:
            logger.error(
                "Failed to increment views",
                task=task.get_name(),
                error=str(error),
                exc_info=error,
            )

    async def drain(self) -> None:
        """Wait for in-flight increments, used on shutdown and in tests."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
