"""
Temporary-access URLs for stored blobs.

Rows only ever hold canonical locators. Every read path swaps them for
presigned S3 links right before the payload leaves the API.
"""

import asyncio
from functools import partial
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from app.errors.storage import StorageError, UnresolvableLocator, UpstreamStoreFailure
from app.monitoring.logging import get_logger
from app.services.storage.keys import KeyCodec

logger = get_logger(__name__)

SIGNED_FIELDS: tuple[str, ...] = ("contentUrl", "coverImageUrl")


class UrlIssuer:
    """
    Issues presigned GET URLs for blob locators.

    Examples
    --------
    >>> issuer = UrlIssuer(s3_client, codec, default_ttl=3600)
    >>> await issuer.issue("s3://blog-content/blogs/42/content.docx")
    'https://blog-content.s3.amazonaws.com/blogs/42/content.docx?X-Amz-...'
    """

    def __init__(self, client: Any, codec: KeyCodec, default_ttl: int = 3600) -> None:
        self.client = client
        self.codec = codec
        self.default_ttl = default_ttl

    async def issue(self, locator: str | None, ttl: int | None = None) -> str:
        """
        Sign a locator.

        Args:
            locator: Stored locator in any supported shape
            ttl: Lifetime of the link in seconds, `default_ttl` when omitted

        Returns:
            str: Presigned HTTPS URL

        Raises:
            UnresolvableLocator: If no key can be extracted from `locator`
            UpstreamStoreFailure: If the SDK cannot sign the request
        """
        key = self.codec.extract_key(locator)
        if key is None:
            raise UnresolvableLocator(locator)

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None,
                partial(
                    self.client.generate_presigned_url,
                    "get_object",
                    Params={"Bucket": self.codec.bucket, "Key": key},
                    ExpiresIn=self.default_ttl if ttl is None else ttl,
                ),
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamStoreFailure(diagnostic=f"presign {key}: {e!s}") from e

    async def _sign_or_none(self, field: str, locator: str) -> str | None:
        try:
            return await self.issue(locator)
        except StorageError as e:
            logger.warning(
                "Failed to sign blob URL",
                field=field,
                locator=locator,
                error=e.detail,
                diagnostic=e.diagnostic,
            )
            return None

    async def sign_fields(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Replace every locator field of one payload with a signed URL.

        Fields are signed concurrently. A field that fails to sign is set
        to ``None``; the rest of the payload is unaffected.

        Args:
            payload: Serialized blog with camelCase keys

        Returns:
            dict[str, Any]: The same payload, mutated in place
        """
        fields = [field for field in SIGNED_FIELDS if payload.get(field)]
        signed = await asyncio.gather(
            *(self._sign_or_none(field, payload[field]) for field in fields),
        )
        payload.update(zip(fields, signed, strict=True))
        return payload

    async def sign_many(self, payloads: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Sign a page of payloads concurrently."""
        await asyncio.gather(*(self.sign_fields(payload) for payload in payloads))
        return payloads
