"""
S3 storage implementation.

Blocking boto3 calls run in the default thread pool so the event loop keeps
serving other requests while an upload or download is in flight.
"""

import asyncio
from collections.abc import Callable
from functools import partial
from typing import Any, TypeVar

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.configs.settings import Settings
from app.errors.storage import ContentFetchFailure, UpstreamStoreFailure
from app.monitoring.logging import get_logger
from app.services.storage.keys import KeyCodec

logger = get_logger(__name__)

T = TypeVar("T")

_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def create_s3_client(settings: Settings) -> Any:
    """
    Build the boto3 S3 client from settings.

    Credentials fall back to the default boto3 chain (env, profile, role)
    when not configured explicitly.
    """
    secret = settings.AWS_SECRET_ACCESS_KEY
    return boto3.client(
        "s3",
        region_name=settings.AWS_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=secret.get_secret_value() if secret else None,
        config=Config(signature_version="s3v4", retries={"max_attempts": 3, "mode": "standard"}),
    )


def is_missing(error: ClientError) -> bool:
    """Whether a client error means the object is absent."""
    return str(error.response.get("Error", {}).get("Code")) in _MISSING_CODES


class S3BlobStore:
    """
    S3 blob store.

    Stores blog blobs in a single bucket and hands back `s3://` locators.
    """

    def __init__(self, client: Any, codec: KeyCodec) -> None:
        """
        Initialize the store.

        Args:
            client: boto3 S3 client
            codec: Key codec owning the bucket name and locator format
        """
        self.client = client
        self.codec = codec
        self.bucket = codec.bucket

    async def _run(self, func: Callable[..., T], /, **kwargs: Any) -> T:
        """Run a blocking SDK call in the thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, **kwargs))

    async def put(self, data: bytes, key: str, content_type: str) -> str:
        """
        Upload an object.

        Args:
            data: Raw object bytes
            key: Object key
            content_type: MIME type of the object

        Returns:
            str: `s3://bucket/key` locator
        """
        try:
            await self._run(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.exception("Blob upload failed", key=key)
            raise UpstreamStoreFailure(diagnostic=f"put {key}: {e!s}") from e

        logger.info("Blob uploaded", key=key, size=len(data), content_type=content_type)
        return self.codec.to_opaque(key)

    async def delete(self, key: str) -> None:
        try:
            await self._run(self.client.delete_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            if is_missing(e):
                return
            raise UpstreamStoreFailure(diagnostic=f"delete {key}: {e!s}") from e
        except BotoCoreError as e:
            raise UpstreamStoreFailure(diagnostic=f"delete {key}: {e!s}") from e

        logger.info("Blob deleted", key=key)

    async def exists(self, key: str) -> bool:
        try:
            await self._run(self.client.head_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            if is_missing(e):
                return False
            raise UpstreamStoreFailure(diagnostic=f"head {key}: {e!s}") from e
        except BotoCoreError as e:
            raise UpstreamStoreFailure(diagnostic=f"head {key}: {e!s}") from e
        return True

    def _read(self, key: str) -> bytes:
        response = self.client.get_object(Bucket=self.bucket, Key=key)
        return response["Body"].read()

    async def get(self, key: str) -> bytes:
        """
        Download an object.

        Raises:
            ContentFetchFailure: On a missing object or any SDK failure
        """
        try:
            return await self._run(self._read, key=key)
        except (BotoCoreError, ClientError) as e:
            logger.exception("Blob fetch failed", key=key)
            raise ContentFetchFailure(key=key, diagnostic=str(e)) from e

    async def ping(self) -> None:
        try:
            await self._run(self.client.head_bucket, Bucket=self.bucket)
        except (BotoCoreError, ClientError) as e:
            raise UpstreamStoreFailure(diagnostic=f"head_bucket {self.bucket}: {e!s}") from e
