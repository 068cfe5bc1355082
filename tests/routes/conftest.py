# tests/routes/conftest.py
"""Pytest fixtures for route tests."""

from collections.abc import AsyncGenerator

import pytest
from fakes import API_KEY, InMemoryBlobStore
from httpx import ASGITransport, AsyncClient

from app.dependencies import get_blog_service
from app.main import app
from app.managers.rate_limiter import limiter
from app.services import BlogService
from app.services.storage import KeyCodec

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@pytest.fixture
def api_headers() -> dict[str, str]:
    """Headers carrying the shared secret."""
    return {"X-API-Key": API_KEY}


@pytest.fixture
async def client(
    service: BlogService,
    blob_store: InMemoryBlobStore,
    codec: KeyCodec,
) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client wired to the in-memory stores."""
    limiter.enabled = False
    app.dependency_overrides[get_blog_service] = lambda: service
    app.state.blob_store = blob_store
    app.state.key_codec = codec
    async with AsyncClient(
        base_url="http://test",
        transport=ASGITransport(app=app),
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
    limiter.enabled = True


@pytest.fixture
def content_file(docx_bytes: bytes) -> dict[str, tuple[str, bytes, str]]:
    """Multipart `files` mapping with a valid content document."""
    return {"content": ("guide.docx", docx_bytes, DOCX_TYPE)}
