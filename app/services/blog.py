"""
Blog content coordinator.

Keeps a blog row and its blobs in step across the three write pipelines:

Creation
    Reserve an id, sanitize and upload the content (and cover) under keys
    derived from that id, then insert the row with the real locators. When
    the insert fails, the fresh blobs are deleted again.

Replacement
    Per supplied slot: delete the blob the current locator points at, upload
    the new bytes under a key carrying the new file's extension, then write
    metadata and new locators to the row in a single update.

Permanent deletion
    Delete every key either slot may have been stored under, then remove
    the row. Blob cleanup is best-effort and never blocks the row removal.

Read paths serialize rows to camelCase payloads and swap locators for
presigned links.
"""

import asyncio
from base64 import b64encode
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any

from app.configs.settings import DOCX_CONTENT_TYPE
from app.errors.blog import DuplicateSlugError, NotFoundError
from app.errors.storage import StorageError, UnresolvableLocator
from app.models.blog import BlogDB
from app.monitoring.logging import get_logger
from app.repositories.blog import BlogRepository
from app.schemas.blog import BlogContentRead, BlogCreate, BlogRead, BlogUpdate
from app.services.presigner import UrlIssuer
from app.services.sanitizer import ContentSanitizer
from app.services.storage.base import BlobStore
from app.services.storage.keys import CONTENT_EXTENSIONS, KeyCodec, Role, normalize_extension
from app.services.views import ViewCounter
from app.utils.helpers import page_to_offset, pagination_meta

logger = get_logger(__name__)

TEXT_CONTENT_TYPES: dict[str, str] = {
    ".html": "text/html; charset=utf-8",
    ".htm": "text/html; charset=utf-8",
    ".md": "text/markdown; charset=utf-8",
}


@dataclass(frozen=True)
class Upload:
    """An uploaded file, already read into memory and validated."""

    data: bytes
    filename: str
    content_type: str

    @property
    def extension(self) -> str:
        return normalize_extension(PurePosixPath(self.filename).suffix)


def content_type_for(key: str) -> str:
    extension = normalize_extension(PurePosixPath(key).suffix)
    if extension == ".docx":
        return DOCX_CONTENT_TYPE
    return TEXT_CONTENT_TYPES.get(extension, "application/octet-stream")


class BlogService:
    """
    Coordinates the record store, the blob store and the URL issuer.

    One instance serves one request; collaborators other than the
    repository are shared, process-wide objects.
    """

    def __init__(
        self,
        repo: BlogRepository,
        blob_store: BlobStore,
        codec: KeyCodec,
        issuer: UrlIssuer,
        sanitizer: ContentSanitizer,
        views: ViewCounter,
        content_extensions: tuple[str, ...] = CONTENT_EXTENSIONS,
    ) -> None:
        self.repo = repo
        self.blob_store = blob_store
        self.codec = codec
        self.issuer = issuer
        self.sanitizer = sanitizer
        self.views = views
        self.content_extensions = content_extensions

    # --- helpers ---

    async def _present(self, blog: BlogDB) -> dict[str, Any]:
        return await self.issuer.sign_fields(BlogRead.model_validate(blog).to_payload())

    async def _present_many(self, blogs: list[BlogDB]) -> list[dict[str, Any]]:
        payloads = [BlogRead.model_validate(blog).to_payload() for blog in blogs]
        return await self.issuer.sign_many(payloads)

    async def _require(self, blog_id: int, *, include_deleted: bool = False) -> BlogDB:
        blog = await self.repo.get_by_id(blog_id, include_deleted=include_deleted)
        if blog is None:
            raise NotFoundError
        return blog

    async def _discard(self, key: str) -> bool:
        """
        Delete a blob if it exists, logging instead of raising.

        Returns:
            bool: True if a blob was deleted
        """
        try:
            if not await self.blob_store.exists(key):
                return False
            await self.blob_store.delete(key)
        except (StorageError, OSError) as e:
            logger.warning(
                "Best-effort blob delete failed",
                key=key,
                error=str(e),
                diagnostic=getattr(e, "diagnostic", None),
            )
            return False
        return True

    async def _upload(self, blog_id: int, role: Role, upload: Upload, data: bytes) -> tuple[str, str]:
        key = self.codec.derive_key(blog_id, role, upload.extension)
        locator = await self.blob_store.put(data, key, upload.content_type)
        return key, locator

    async def _replace_slot(
        self,
        blog_id: int,
        role: Role,
        current_locator: str | None,
        upload: Upload,
        data: bytes,
    ) -> str:
        """
        Delete the slot's current blob, then upload the new one.

        The old blob is addressed by its own extracted key because the new
        file's extension may differ.
        """
        if old_key := self.codec.extract_key(current_locator):
            await self._discard(old_key)
        _, locator = await self._upload(blog_id, role, upload, data)
        return locator

    # --- writes ---

    async def create(
        self,
        meta: BlogCreate,
        content: Upload,
        cover: Upload | None = None,
    ) -> dict[str, Any]:
        """
        Create a blog with its content document and optional cover.

        Args:
            meta: Validated metadata, slug already resolved
            content: Content document upload
            cover: Cover image upload

        Returns:
            dict[str, Any]: Presented blog payload

        Raises:
            DuplicateSlugError: If the slug is taken, soft-deleted rows included
            InvalidContentError: If the document cannot be sanitized
            UpstreamStoreFailure: If an upload or the insert fails
        """
        slug = str(meta.slug)
        if await self.repo.slug_exists(slug):
            raise DuplicateSlugError(slug)

        safe_content = await self.sanitizer.transform(content.data, content.extension)
        blog_id = await self.repo.reserve_id()

        uploaded: list[str] = []
        try:
            content_key, content_locator = await self._upload(blog_id, Role.CONTENT, content, safe_content)
            uploaded.append(content_key)

            cover_locator = None
            if cover is not None:
                cover_key, cover_locator = await self._upload(blog_id, Role.COVER, cover, cover.data)
                uploaded.append(cover_key)

            blog = await self.repo.create(
                BlogDB(
                    id=blog_id,
                    slug=slug,
                    title=meta.title,
                    summary=meta.summary,
                    author_id=meta.author_id,
                    tags=meta.tags,
                    read_time=meta.read_time,
                    status=meta.status,
                    content_url=content_locator,
                    cover_image_url=cover_locator,
                ),
            )
            await self.repo.commit()
        except Exception:
            if uploaded:
                logger.warning("Blog creation failed, removing uploaded blobs", blog_id=blog_id, keys=uploaded)
                await asyncio.gather(*(self._discard(key) for key in uploaded))
            raise

        logger.info("Blog created", blog_id=blog.id, slug=blog.slug, has_cover=cover is not None)
        return await self._present(blog)

    async def update(
        self,
        blog_id: int,
        meta: BlogUpdate | None = None,
        content: Upload | None = None,
        cover: Upload | None = None,
    ) -> dict[str, Any]:
        """
        Update metadata and replace any supplied blobs.

        Args:
            blog_id: Blog to update
            meta: Fields to change
            content: Replacement content document
            cover: Replacement cover image

        Returns:
            dict[str, Any]: Presented blog payload
        """
        blog = await self._require(blog_id)
        changes = meta.changes() if meta else {}

        new_slug = changes.get("slug")
        if new_slug is None:
            changes.pop("slug", None)
        elif new_slug != blog.slug and await self.repo.slug_exists(new_slug, exclude_id=blog_id):
            raise DuplicateSlugError(new_slug)

        safe_content = None
        if content is not None:
            safe_content = await self.sanitizer.transform(content.data, content.extension)

        slots: dict[str, Any] = {}
        if content is not None and safe_content is not None:
            slots["content_url"] = self._replace_slot(
                blog_id,
                Role.CONTENT,
                blog.content_url,
                content,
                safe_content,
            )
        if cover is not None:
            slots["cover_image_url"] = self._replace_slot(
                blog_id,
                Role.COVER,
                blog.cover_image_url,
                cover,
                cover.data,
            )
        if slots:
            # Both slots run to completion before the first failure is raised
            results = await asyncio.gather(*slots.values(), return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException):
                    raise result
            changes.update(zip(slots, results, strict=True))

        blog = await self.repo.update(blog, changes)
        await self.repo.commit()
        logger.info("Blog updated", blog_id=blog_id, fields=sorted(changes))
        return await self._present(blog)

    async def soft_delete(self, blog_id: int) -> None:
        """Hide a blog from every read path; blobs stay in place."""
        blog = await self._require(blog_id)
        await self.repo.soft_delete(blog)
        await self.repo.commit()
        logger.info("Blog soft-deleted", blog_id=blog_id)

    async def permanent_delete(self, blog_id: int) -> None:
        """
        Remove a blog's blobs, then its row.

        Soft-deleted blogs can be removed too. Every known key of both slots
        is tried, plus whatever the stored locators still resolve to, so an
        unreadable locator cannot leave the row behind.
        """
        blog = await self._require(blog_id, include_deleted=True)

        keys = dict.fromkeys(
            [
                *self.codec.candidate_keys(blog_id, Role.CONTENT, self.content_extensions),
                *self.codec.candidate_keys(blog_id, Role.COVER),
            ],
        )
        for locator in (blog.content_url, blog.cover_image_url):
            if key := self.codec.extract_key(locator):
                keys[key] = None

        deleted = await asyncio.gather(*(self._discard(key) for key in keys))
        await self.repo.hard_delete(blog)
        await self.repo.commit()
        logger.info("Blog permanently deleted", blog_id=blog_id, blobs_deleted=sum(deleted))

    # --- reads ---

    async def get_by_slug(self, slug: str) -> dict[str, Any]:
        """
        Read one blog and count the view in the background.

        The payload carries the view count as it was before this read.
        """
        blog = await self.repo.get_by_slug(slug)
        if blog is None:
            raise NotFoundError
        payload = BlogRead.model_validate(blog).to_payload()
        self.views.schedule(blog.id)  # type: ignore[arg-type]
        return await self.issuer.sign_fields(payload)

    async def get_content(self, slug: str) -> dict[str, Any]:
        """
        Read one blog with its document inlined.

        Text documents are returned as UTF-8; binary ones base64-encoded.

        Raises:
            NotFoundError: If the blog does not exist or is soft-deleted
            UnresolvableLocator: If the content locator has no known shape
            ContentFetchFailure: If the blob is missing from the store
        """
        blog = await self.repo.get_by_slug(slug)
        if blog is None:
            raise NotFoundError

        key = self.codec.extract_key(blog.content_url)
        if key is None:
            raise UnresolvableLocator(blog.content_url)
        data = await self.blob_store.get(key)

        content_type = content_type_for(key)
        if content_type.startswith("text/"):
            content, encoding = data.decode("utf-8", errors="replace"), "utf-8"
        else:
            content, encoding = b64encode(data).decode("ascii"), "base64"

        payload = BlogContentRead.model_validate(
            {
                **BlogRead.model_validate(blog).model_dump(),
                "content": content,
                "content_encoding": encoding,
                "content_type": content_type,
            },
        ).to_payload()
        payload.pop("contentUrl", None)
        self.views.schedule(blog.id)  # type: ignore[arg-type]
        return await self.issuer.sign_fields(payload)

    async def list_blogs(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        tags: list[str] | None = None,
        search: str | None = None,
        status: str = "published",
    ) -> tuple[list[dict[str, Any]], dict[str, int | bool]]:
        blogs, total = await self.repo.list_blogs(
            offset=page_to_offset(page, limit),
            limit=limit,
            status=status,
            tags=tags,
            search=search,
        )
        return await self._present_many(blogs), pagination_meta(total, page, limit)

    async def latest(self, limit: int = 10) -> list[dict[str, Any]]:
        return await self._present_many(await self.repo.latest(limit))

    async def popular(self, limit: int = 10) -> list[dict[str, Any]]:
        return await self._present_many(await self.repo.popular(limit))

    async def search(
        self,
        query: str,
        *,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[dict[str, Any]], dict[str, int | bool]]:
        """
        Full-text search, ranked by the database.

        Returns:
            tuple: Presented page and pagination block
        """
        blogs, total = await self.repo.search(query, offset=page_to_offset(page, limit), limit=limit)
        logger.info("Search completed", query=query, results=len(blogs), total=total)
        return await self._present_many(blogs), pagination_meta(total, page, limit)
