"""
Base storage protocol for blob storage operations.

This module defines the interface the content coordinator, the URL issuer
and the health checks rely on, allowing the S3 backend to be swapped for an
in-memory fake in tests.
"""

from abc import abstractmethod
from typing import Protocol


class BlobStore(Protocol):
    """
    Protocol defining the interface for blob stores.

    Keys are the canonical object keys produced by `KeyCodec`. Locators
    returned by `put` use the opaque `s3://bucket/key` form.
    """

    @abstractmethod
    async def put(self, data: bytes, key: str, content_type: str) -> str:
        """
        Store an object, silently overwriting any existing one.

        Args:
            data: Raw object bytes
            key: Object key
            content_type: MIME type recorded with the object

        Returns:
            str: Canonical locator of the stored object
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Delete an object. An already absent object counts as deleted.

        Args:
            key: Object key
        """
        ...

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """
        Check whether an object exists.

        Args:
            key: Object key

        Returns:
            bool: True if the object exists, False otherwise
        """
        ...

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """
        Fetch an object's bytes.

        Args:
            key: Object key

        Returns:
            bytes: Object body

        Raises:
            ContentFetchFailure: If the object is missing or unreadable
        """
        ...

    @abstractmethod
    async def ping(self) -> None:
        """Raise if the bucket cannot be reached."""
        ...
