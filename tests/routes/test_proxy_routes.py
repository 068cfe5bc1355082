# tests/routes/test_proxy_routes.py
"""Tests for app/routes/proxy.py module."""

import pytest
from fakes import InMemoryBlobStore
from httpx import AsyncClient


class TestContentProxy:
    """Tests for GET /api/content/{blog_id}/{filename}."""

    @pytest.mark.asyncio
    async def test_serves_document(self, client: AsyncClient, blob_store: InMemoryBlobStore) -> None:
        blob_store.objects["blogs/3/content.docx"] = (b"PK\x03\x04doc", "application/octet-stream")

        response = await client.get("/api/content/3/content.docx")

        assert response.status_code == 200
        assert response.content == b"PK\x03\x04doc"
        assert response.headers["cache-control"] == "public, max-age=3600"
        assert response.headers["x-content-source"] == "S3-Proxy"
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        )

    @pytest.mark.asyncio
    async def test_not_stored(self, client: AsyncClient) -> None:
        response = await client.get("/api/content/3/content.html")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "content.html not found for blog 3"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("filename", ["cover.png", "content.md", "secrets.txt"])
    async def test_other_filenames_rejected(
        self,
        client: AsyncClient,
        blob_store: InMemoryBlobStore,
        filename: str,
    ) -> None:
        response = await client.get(f"/api/content/3/{filename}")

        assert response.status_code == 400
        assert response.json()["message"] == "Only content.html and content.docx are allowed"
        assert blob_store.calls == []


class TestImageProxy:
    """Tests for GET /api/images/{blog_id}/{filename}."""

    @pytest.mark.asyncio
    async def test_serves_image(self, client: AsyncClient, blob_store: InMemoryBlobStore) -> None:
        blob_store.objects["blogs/3/cover.png"] = (b"\x89PNG", "image/png")

        response = await client.get("/api/images/3/cover.png")

        assert response.status_code == 200
        assert response.content == b"\x89PNG"
        assert response.headers["content-type"] == "image/png"
        assert response.headers["cache-control"] == "public, max-age=86400"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("filename", ["cover.exe", "cover.gif", ".hidden.png", "content.docx"])
    async def test_non_images_rejected(self, client: AsyncClient, filename: str) -> None:
        response = await client.get(f"/api/images/3/{filename}")

        assert response.status_code == 400
        assert response.json()["message"] == "Only image files are allowed"

    @pytest.mark.asyncio
    async def test_missing_image(self, client: AsyncClient) -> None:
        response = await client.get("/api/images/3/cover.webp")

        assert response.status_code == 404
        assert response.json()["message"] == "cover.webp not found for blog 3"

    @pytest.mark.asyncio
    async def test_blog_id_must_be_positive(self, client: AsyncClient) -> None:
        response = await client.get("/api/images/0/cover.png")
        assert response.status_code == 400
