"""
Storage services package.

This package provides the blob store used for blog content documents and
cover images, plus the key codec that names their objects.
"""

from app.services.storage.base import BlobStore
from app.services.storage.keys import (
    COVER_EXTENSIONS,
    CdnHttps,
    KeyCodec,
    Locator,
    OpaqueUri,
    ProviderHttps,
    Role,
    normalize_extension,
)
from app.services.storage.s3 import S3BlobStore, create_s3_client

__all__ = [
    "COVER_EXTENSIONS",
    "BlobStore",
    "CdnHttps",
    "KeyCodec",
    "Locator",
    "OpaqueUri",
    "ProviderHttps",
    "Role",
    "S3BlobStore",
    "create_s3_client",
    "normalize_extension",
]
