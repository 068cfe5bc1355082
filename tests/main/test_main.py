from unittest.mock import AsyncMock, MagicMock

from httpx import AsyncClient
from pytest import MonkeyPatch, mark

from app.main import app


def health_checker(healthy: bool) -> MagicMock:
    health = MagicMock()
    health.is_healthy = healthy
    health.to_dict.return_value = {
        "status": "ready" if healthy else "not_ready",
        "checks": {"database": {"status": "pass" if healthy else "fail"}},
    }
    checker = MagicMock()
    checker.check_readiness = AsyncMock(return_value=health)
    return checker


@mark.asyncio
async def test_root_endpoint(client: AsyncClient) -> None:
    """Test root endpoint."""
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to Blog Content API"}


@mark.asyncio
async def test_health_ready(client: AsyncClient, monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setattr(app.state, "health_checker", health_checker(True), raising=False)

    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ready"


@mark.asyncio
async def test_health_not_ready(client: AsyncClient, monkeypatch: MonkeyPatch) -> None:
    """A failing store turns the readiness probe into a 503."""
    monkeypatch.setattr(app.state, "health_checker", health_checker(False), raising=False)

    response = await client.get("/health")

    assert response.status_code == 503
    assert response.json()["checks"]["database"]["status"] == "fail"


@mark.asyncio
async def test_security_headers(client: AsyncClient) -> None:
    response = await client.get("/")

    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert "max-age" in response.headers["strict-transport-security"]


@mark.asyncio
async def test_request_id_round_trip(client: AsyncClient) -> None:
    response = await client.get("/", headers={"X-Request-ID": "req-123"})
    assert response.headers["x-request-id"] == "req-123"

    generated = await client.get("/")
    assert len(generated.headers["x-request-id"]) == 32


@mark.asyncio
async def test_unknown_route(client: AsyncClient) -> None:
    response = await client.get("/api/nothing-here")
    assert response.status_code == 404
