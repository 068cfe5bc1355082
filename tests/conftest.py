# tests/conftest.py
"""Root pytest configuration and shared fixtures."""

import os

# Settings are read at import time; this must happen before app is imported anywhere
os.environ["ENVIRONMENT"] = "test"
os.environ["API_KEY"] = "test-api-key"
os.environ["S3_BUCKET"] = "blog-content"
os.environ["AWS_REGION"] = "us-east-1"

from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402
from fakes import BUCKET, InMemoryBlobStore, InMemoryBlogRepository, build_docx, signed_url  # noqa: E402

from app.services import BlogService, ContentSanitizer, UrlIssuer, ViewCounter  # noqa: E402
from app.services.storage import KeyCodec  # noqa: E402


@pytest.fixture
def codec() -> KeyCodec:
    return KeyCodec(bucket=BUCKET, cdn_base="https://cdn.example.com")


@pytest.fixture
def blob_store(codec: KeyCodec) -> InMemoryBlobStore:
    return InMemoryBlobStore(codec)


@pytest.fixture
def repo() -> InMemoryBlogRepository:
    return InMemoryBlogRepository()


@pytest.fixture
def s3_client() -> MagicMock:
    """boto3 client double whose presigned URLs embed the key."""
    client = MagicMock()
    client.generate_presigned_url.side_effect = lambda op, Params, ExpiresIn: signed_url(**Params)  # noqa: N803
    return client


@pytest.fixture
def issuer(s3_client: MagicMock, codec: KeyCodec) -> UrlIssuer:
    return UrlIssuer(s3_client, codec, default_ttl=3600)


@pytest.fixture
def views() -> MagicMock:
    return MagicMock(spec=ViewCounter)


@pytest.fixture
def service(
    repo: InMemoryBlogRepository,
    blob_store: InMemoryBlobStore,
    codec: KeyCodec,
    issuer: UrlIssuer,
    views: MagicMock,
) -> BlogService:
    return BlogService(
        repo=repo,  # type: ignore[arg-type]
        blob_store=blob_store,
        codec=codec,
        issuer=issuer,
        sanitizer=ContentSanitizer(),
        views=views,
        content_extensions=(".docx",),
    )


@pytest.fixture
def docx_bytes() -> bytes:
    return build_docx()
