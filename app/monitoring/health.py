"""
Dependency health checks.

`GET /health` reports on the two backing stores the API cannot work
without:

- database: `SELECT 1` through a fresh session
- object store: a bucket probe through the blob store

Timeouts
--------
- Database: 2 seconds
- Object store: 3 seconds

Response Format
---------------
{
    "status": "ready" | "not_ready",
    "timestamp": "2025-01-01T12:00:00+08:00",
    "version": "1.0.0",
    "checks": {
        "database": {"status": "pass", "response_ms": 15},
        "object_store": {"status": "pass", "response_ms": 40}
    }
}

Examples
--------
>>> checker = HealthChecker(session_factory, blob_store)
>>> status = await checker.check_readiness()
>>> if status.is_healthy:
...     print("Service is ready")
"""

from asyncio import wait_for
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from time import perf_counter
from typing import TYPE_CHECKING, Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.errors.storage import StorageError
from app.monitoring.logging import get_logger
from app.utils.helpers import today_str

if TYPE_CHECKING:
    from app.services.storage.base import BlobStore

logger = get_logger(__name__)

# Health check timeouts (seconds)
HEALTH_CHECK_TIMEOUTS: dict[str, float] = {
    "database": 2.0,
    "object_store": 3.0,
}


class CheckStatus(StrEnum):
    """Status values for individual health checks."""

    PASS = "pass"
    FAIL = "fail"


class OverallStatus(StrEnum):
    """Overall health status."""

    READY = "ready"
    NOT_READY = "not_ready"


@dataclass
class ComponentCheck:
    """
    Result of an individual health check component.

    Attributes
    ----------
    status : CheckStatus
        Status of the check (pass, fail)
    response_ms : int | None
        Response time in milliseconds
    message : str | None
        Optional message or error details
    """

    status: CheckStatus
    response_ms: int | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"status": self.status.value}
        if self.response_ms is not None:
            result["response_ms"] = self.response_ms
        if self.message is not None:
            result["message"] = self.message
        return result


@dataclass
class HealthStatus:
    """Complete health status response."""

    status: OverallStatus
    timestamp: str
    version: str
    checks: dict[str, ComponentCheck] = field(default_factory=dict)

    @property
    def is_healthy(self) -> bool:
        return self.status == OverallStatus.READY

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary format for JSON response.

        Returns:
            Dictionary representation of health status.
        """
        return {
            "status": self.status.value,
            "timestamp": self.timestamp,
            "version": self.version,
            "checks": {name: check.to_dict() for name, check in self.checks.items()},
        }


class HealthChecker:
    """
    Readiness checker for the record store and the object store.

    Examples
    --------
    >>> checker = HealthChecker(session_factory, blob_store)
    >>> readiness = await checker.check_readiness()
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        blob_store: "BlobStore",
        version: str = "1.0.0",
    ) -> None:
        self.session_factory = session_factory
        self.blob_store = blob_store
        self.version = version

    async def check_readiness(self) -> HealthStatus:
        """
        Check readiness - verify both stores answer.

        Returns:
            HealthStatus with readiness information.
        """
        checks = {
            "database": await self._timed("database", self._ping_database),
            "object_store": await self._timed("object_store", self.blob_store.ping),
        }
        overall_status = OverallStatus.READY
        if any(check.status == CheckStatus.FAIL for check in checks.values()):
            overall_status = OverallStatus.NOT_READY

        return HealthStatus(
            status=overall_status,
            timestamp=today_str(),
            version=self.version,
            checks=checks,
        )

    async def _ping_database(self) -> None:
        async with self.session_factory() as session:
            await session.execute(text("SELECT 1"))

    async def _timed(self, name: str, probe: Callable[[], Awaitable[Any]]) -> ComponentCheck:
        """
        Run one probe under its timeout.

        Args:
            name: Component name, also the key into `HEALTH_CHECK_TIMEOUTS`.
            probe: Coroutine function raising on failure.

        Returns:
            ComponentCheck with the probe's outcome.
        """
        start = perf_counter()
        try:
            await wait_for(probe(), timeout=HEALTH_CHECK_TIMEOUTS[name])
        except TimeoutError:
            message = f"{name} check timed out"
        except (SQLAlchemyError, StorageError, OSError) as e:
            message = f"{name} check failed: {e!s}"
        else:
            elapsed_ms = int((perf_counter() - start) * 1000)
            return ComponentCheck(status=CheckStatus.PASS, response_ms=elapsed_ms)

        elapsed_ms = int((perf_counter() - start) * 1000)
        logger.warning("Health check failed", component=name, message=message)
        return ComponentCheck(status=CheckStatus.FAIL, response_ms=elapsed_ms, message=message)
