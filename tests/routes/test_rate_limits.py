# tests/routes/test_rate_limits.py
"""Rate limit behaviour of the blog routes with the limiter switched on."""

from collections.abc import Generator

import pytest
from httpx import AsyncClient

from app.managers.rate_limiter import limiter


@pytest.fixture
def live_limiter(client: AsyncClient) -> Generator[None]:
    """Turn the limiter back on for one test with empty counters."""
    limiter.reset()
    limiter.enabled = True
    yield
    limiter.enabled = False
    limiter.reset()


@pytest.mark.asyncio
@pytest.mark.usefixtures("live_limiter")
async def test_junk_keys_share_the_ip_bucket(client: AsyncClient) -> None:
    statuses = [
        (await client.get("/api/blogs/feed/latest", headers={"X-API-Key": f"junk-{i}"})).status_code
        for i in range(101)
    ]

    assert statuses[:100] == [200] * 100
    assert statuses[100] == 429


@pytest.mark.asyncio
@pytest.mark.usefixtures("live_limiter")
async def test_valid_key_does_not_bypass_public_reads(
    client: AsyncClient,
    api_headers: dict[str, str],
) -> None:
    for _ in range(100):
        await client.get("/api/blogs/feed/latest")

    response = await client.get("/api/blogs/feed/latest", headers=api_headers)

    assert response.status_code == 429
    assert response.json()["success"] is False
