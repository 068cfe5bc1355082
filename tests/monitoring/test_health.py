# tests/monitoring/test_health.py
"""Tests for app/monitoring/health.py module."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from app.errors.storage import UpstreamStoreFailure
from app.monitoring.health import (
    CheckStatus,
    ComponentCheck,
    HealthChecker,
    HealthStatus,
    OverallStatus,
)


def session_factory(execute: AsyncMock) -> MagicMock:
    """Session factory double whose sessions run `execute`."""
    session = MagicMock()
    session.execute = execute
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


@pytest.fixture
def blob_store() -> MagicMock:
    store = MagicMock()
    store.ping = AsyncMock(return_value=None)
    return store


class TestComponentCheck:
    """Tests for ComponentCheck serialization."""

    def test_to_dict_omits_empty_fields(self) -> None:
        assert ComponentCheck(status=CheckStatus.PASS).to_dict() == {"status": "pass"}

    def test_to_dict_full(self) -> None:
        check = ComponentCheck(status=CheckStatus.FAIL, response_ms=12, message="down")
        assert check.to_dict() == {"status": "fail", "response_ms": 12, "message": "down"}


class TestHealthChecker:
    """Tests for HealthChecker.check_readiness."""

    @pytest.mark.asyncio
    async def test_ready_when_both_stores_answer(self, blob_store: MagicMock) -> None:
        checker = HealthChecker(session_factory(AsyncMock()), blob_store, version="9.9.9")

        status = await checker.check_readiness()

        assert status.is_healthy
        assert status.version == "9.9.9"
        assert status.checks["database"].status == CheckStatus.PASS
        assert status.checks["object_store"].status == CheckStatus.PASS
        blob_store.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_database_failure(self, blob_store: MagicMock) -> None:
        execute = AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("refused")))
        checker = HealthChecker(session_factory(execute), blob_store)

        status = await checker.check_readiness()

        assert status.status == OverallStatus.NOT_READY
        assert status.checks["database"].status == CheckStatus.FAIL
        assert "database check failed" in str(status.checks["database"].message)
        assert status.checks["object_store"].status == CheckStatus.PASS

    @pytest.mark.asyncio
    async def test_object_store_failure(self, blob_store: MagicMock) -> None:
        blob_store.ping.side_effect = UpstreamStoreFailure(diagnostic="head_bucket denied")
        checker = HealthChecker(session_factory(AsyncMock()), blob_store)

        status = await checker.check_readiness()

        assert not status.is_healthy
        assert status.checks["object_store"].status == CheckStatus.FAIL

    @pytest.mark.asyncio
    async def test_timeout(self, blob_store: MagicMock) -> None:
        async def hang() -> None:
            await asyncio.sleep(10)

        blob_store.ping = hang
        checker = HealthChecker(session_factory(AsyncMock()), blob_store)

        with patch.dict("app.monitoring.health.HEALTH_CHECK_TIMEOUTS", {"object_store": 0.01}):
            status = await checker.check_readiness()

        assert status.checks["object_store"].message == "object_store check timed out"


class TestHealthStatus:
    """Tests for HealthStatus serialization."""

    def test_to_dict(self) -> None:
        status = HealthStatus(
            status=OverallStatus.READY,
            timestamp="2025-01-01 00:00:00",
            version="1.0.0",
            checks={"database": ComponentCheck(status=CheckStatus.PASS, response_ms=3)},
        )
        assert status.to_dict() == {
            "status": "ready",
            "timestamp": "2025-01-01 00:00:00",
            "version": "1.0.0",
            "checks": {"database": {"status": "pass", "response_ms": 3}},
        }
