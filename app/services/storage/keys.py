"""
Object key derivation and locator parsing.

Every blob a blog owns lives under a key derived from the blog id and
the blob's role:

    <namespace>/<blog_id>/<role><extension>

Rows persist the opaque `s3://bucket/key` form. Older rows may hold a
CDN URL or a direct S3 HTTPS URL instead, so parsing accepts all three
shapes, tried in a fixed order.

Examples
--------
>>> codec = KeyCodec(bucket="blog-content")
>>> codec.derive_key(42, Role.CONTENT, ".docx")
'blogs/42/content.docx'
>>> codec.extract_key("s3://blog-content/blogs/42/content.docx")
'blogs/42/content.docx'
>>> codec.extract_key("garbage") is None
True
"""

from dataclasses import dataclass
from enum import StrEnum
from urllib.parse import quote, unquote, urlsplit

from app.monitoring.logging import get_logger

logger = get_logger(__name__)

PROVIDER_HOST_SUFFIX = ".amazonaws.com"

CONTENT_EXTENSIONS: tuple[str, ...] = (".docx",)
# Older rows stored rendered HTML or markdown under the content role
LEGACY_CONTENT_EXTENSIONS: tuple[str, ...] = (".html", ".md")
COVER_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".webp", ".gif", ".svg")


class Role(StrEnum):
    """Slot a blob fills on its blog."""

    CONTENT = "content"
    COVER = "cover"


@dataclass(frozen=True)
class OpaqueUri:
    """`s3://bucket/key`, the persisted form."""

    bucket: str
    key: str


@dataclass(frozen=True)
class CdnHttps:
    """`<cdn base>/<key>`, written by deployments fronted by a CDN."""

    base: str
    key: str


@dataclass(frozen=True)
class ProviderHttps:
    """`https://<bucket>.s3.<region>.amazonaws.com/<key>`, optionally presigned."""

    host: str
    key: str


Locator = OpaqueUri | CdnHttps | ProviderHttps


def normalize_extension(extension: str) -> str:
    """
    Lower-case an extension and make sure it starts with a dot.

    Examples
    --------
    >>> normalize_extension("DOCX")
    '.docx'
    """
    extension = extension.strip().lower()
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    return extension


def _strip_query(path: str) -> str:
    """Drop query and fragment from a URL path and percent-decode it."""
    return unquote(path.split("?", 1)[0].split("#", 1)[0])


class KeyCodec:
    """
    Bidirectional mapping between blog blobs and object keys.

    Pure: no I/O, safe to share across requests.
    """

    def __init__(
        self,
        bucket: str,
        namespace: str = "blogs",
        cdn_base: str | None = None,
        region: str = "us-east-1",
    ) -> None:
        self.bucket = bucket
        self.namespace = namespace.strip("/")
        self.cdn_base = cdn_base.rstrip("/") if cdn_base else None
        self.region = region

    def prefix(self, blog_id: int | str) -> str:
        """Key prefix shared by every blob of one blog."""
        return f"{self.namespace}/{blog_id}/"

    def derive_key(self, blog_id: int | str, role: Role, extension: str) -> str:
        """
        Build the key for a blog's blob.

        Args:
            blog_id: Blog identifier
            role: Content or cover slot
            extension: File extension, with or without the leading dot

        Returns:
            str: Deterministic object key
        """
        return f"{self.prefix(blog_id)}{Role(role).value}{normalize_extension(extension)}"

    def candidate_keys(
        self,
        blog_id: int | str,
        role: Role,
        content_extensions: tuple[str, ...] = CONTENT_EXTENSIONS,
    ) -> list[str]:
        """Every key a blob of this role may have been stored under."""
        if role == Role.COVER:
            extensions = COVER_EXTENSIONS
        else:
            extensions = tuple(dict.fromkeys(content_extensions + LEGACY_CONTENT_EXTENSIONS))
        return [self.derive_key(blog_id, role, extension) for extension in extensions]

    def parse(self, locator: str | None) -> Locator | None:
        """
        Classify a stored locator.

        Shapes are tried in order: opaque URI, CDN URL, provider URL.
        Unknown shapes are logged and yield ``None``.
        """
        if not locator:
            return None

        if locator.startswith("s3://"):
            bucket, _, key = locator.removeprefix("s3://").partition("/")
            if bucket and key:
                return OpaqueUri(bucket=bucket, key=key)
        elif self.cdn_base and locator.startswith(f"{self.cdn_base}/"):
            if key := _strip_query(locator.removeprefix(f"{self.cdn_base}/")):
                return CdnHttps(base=self.cdn_base, key=key)
        else:
            parts = urlsplit(locator)
            if parts.scheme in ("http", "https") and parts.netloc.endswith(PROVIDER_HOST_SUFFIX):
                if key := unquote(parts.path.lstrip("/")):
                    return ProviderHttps(host=parts.netloc, key=key)

        logger.warning("Could not extract key from locator", locator=locator)
        return None

    def extract_key(self, locator: str | None) -> str | None:
        """
        Extract the object key from any supported locator shape.

        Returns:
            str | None: The key, or ``None`` when the locator is empty or unknown.
        """
        parsed = self.parse(locator)
        return parsed.key if parsed else None

    def to_opaque(self, key: str) -> str:
        """Render the persisted `s3://` form."""
        return f"s3://{self.bucket}/{key}"

    def to_cdn(self, key: str) -> str:
        """Render the CDN form. Requires a configured CDN base."""
        if not self.cdn_base:
            msg = "No CDN base configured"
            raise ValueError(msg)
        return f"{self.cdn_base}/{quote(key)}"

    def to_provider(self, key: str) -> str:
        """Render the virtual-hosted S3 HTTPS form."""
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quote(key)}"
