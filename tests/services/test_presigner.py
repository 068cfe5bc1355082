# tests/services/test_presigner.py
"""Tests for app/services/presigner.py module."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import NoCredentialsError

from app.errors.storage import UnresolvableLocator, UpstreamStoreFailure
from app.services.presigner import UrlIssuer


class TestIssue:
    """Tests for UrlIssuer.issue."""

    @pytest.mark.asyncio
    async def test_signs_extracted_key(self, issuer: UrlIssuer, s3_client: MagicMock) -> None:
        url = await issuer.issue("s3://blog-content/blogs/1/content.docx")

        assert url.startswith("https://blog-content.s3.amazonaws.com/blogs/1/content.docx?")
        s3_client.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": "blog-content", "Key": "blogs/1/content.docx"},
            ExpiresIn=3600,
        )

    @pytest.mark.asyncio
    async def test_custom_ttl(self, issuer: UrlIssuer, s3_client: MagicMock) -> None:
        await issuer.issue("https://cdn.example.com/blogs/1/cover.png", ttl=300)
        assert s3_client.generate_presigned_url.call_args.kwargs["ExpiresIn"] == 300

    @pytest.mark.asyncio
    async def test_zero_ttl_is_kept(self, issuer: UrlIssuer, s3_client: MagicMock) -> None:
        await issuer.issue("s3://blog-content/blogs/1/content.docx", ttl=0)
        assert s3_client.generate_presigned_url.call_args.kwargs["ExpiresIn"] == 0

    @pytest.mark.asyncio
    async def test_unknown_locator(self, issuer: UrlIssuer) -> None:
        with pytest.raises(UnresolvableLocator):
            await issuer.issue("not-a-locator")

    @pytest.mark.asyncio
    async def test_sdk_failure(self, issuer: UrlIssuer, s3_client: MagicMock) -> None:
        s3_client.generate_presigned_url.side_effect = NoCredentialsError()
        with pytest.raises(UpstreamStoreFailure):
            await issuer.issue("s3://blog-content/blogs/1/content.docx")


class TestSignFields:
    """Tests for payload signing."""

    @pytest.mark.asyncio
    async def test_signs_both_fields(self, issuer: UrlIssuer) -> None:
        payload = {
            "id": 1,
            "contentUrl": "s3://blog-content/blogs/1/content.docx",
            "coverImageUrl": "s3://blog-content/blogs/1/cover.png",
        }

        result = await issuer.sign_fields(payload)

        assert result is payload
        assert "blogs/1/content.docx?" in result["contentUrl"]
        assert "blogs/1/cover.png?" in result["coverImageUrl"]

    @pytest.mark.asyncio
    async def test_missing_cover_stays_none(self, issuer: UrlIssuer, s3_client: MagicMock) -> None:
        payload = {"contentUrl": "s3://blog-content/blogs/1/content.docx", "coverImageUrl": None}

        await issuer.sign_fields(payload)

        assert payload["coverImageUrl"] is None
        assert s3_client.generate_presigned_url.call_count == 1

    @pytest.mark.asyncio
    async def test_failed_field_is_nulled(self, issuer: UrlIssuer) -> None:
        """One bad locator nulls its field and leaves the rest of the payload alone."""
        payload = {
            "contentUrl": "s3://blog-content/blogs/1/content.docx",
            "coverImageUrl": "garbage",
        }

        await issuer.sign_fields(payload)

        assert payload["coverImageUrl"] is None
        assert payload["contentUrl"].startswith("https://")

    @pytest.mark.asyncio
    async def test_sign_many(self, issuer: UrlIssuer) -> None:
        payloads = [{"contentUrl": f"s3://blog-content/blogs/{i}/content.docx"} for i in range(3)]

        result = await issuer.sign_many(payloads)

        assert [p["contentUrl"].split("?")[0] for p in result] == [
            f"https://blog-content.s3.amazonaws.com/blogs/{i}/content.docx" for i in range(3)
        ]
