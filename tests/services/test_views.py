# tests/services/test_views.py
"""Tests for app/services/views.py module."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.errors.storage import UpstreamStoreFailure
from app.services.views import ViewCounter


def session_factory() -> tuple[MagicMock, MagicMock]:
    """Factory double whose sessions work as async context managers."""
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.__aenter__.return_value = session
    session.__aexit__.return_value = None
    return MagicMock(return_value=session), session


class TestViewCounter:
    """Tests for detached view increments."""

    @pytest.mark.asyncio
    async def test_schedule_does_not_wait(self) -> None:
        factory, _ = session_factory()
        counter = ViewCounter(factory)

        with patch("app.services.views.BlogRepository") as repository:
            repository.return_value.increment_views = AsyncMock()
            counter.schedule(7)

            assert counter.pending == 1
            await counter.drain()

        assert counter.pending == 0

    @pytest.mark.asyncio
    async def test_increment_commits_on_own_session(self) -> None:
        factory, session = session_factory()
        counter = ViewCounter(factory)

        with patch("app.services.views.BlogRepository") as repository:
            repository.return_value.increment_views = AsyncMock()
            await counter.schedule(7)

        repository.assert_called_once_with(session)
        repository.return_value.increment_views.assert_awaited_once_with(7)
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self) -> None:
        """A failed increment rolls back and only reaches the log."""
        factory, session = session_factory()
        counter = ViewCounter(factory)

        with (
            patch("app.services.views.BlogRepository") as repository,
            patch("app.services.views.logger") as logger,
        ):
            repository.return_value.increment_views = AsyncMock(
                side_effect=UpstreamStoreFailure(diagnostic="connection reset"),
            )
            counter.schedule(7)
            await counter.drain()

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()
        logger.error.assert_called_once()
        assert logger.error.call_args.kwargs["task"] == "blog-views-7"
        assert counter.pending == 0

    @pytest.mark.asyncio
    async def test_drain_without_tasks(self) -> None:
        factory, _ = session_factory()
        await ViewCounter(factory).drain()
