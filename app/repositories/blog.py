"""Blog repository for database operations."""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import ColumnElement, desc, func, literal_column, or_, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col

from app.errors.blog import DuplicateSlugError
from app.errors.storage import UpstreamStoreFailure
from app.models.blog import BLOGS_ID_SEQ, BlogDB, BlogStatus
from app.monitoring.logging import get_logger

logger = get_logger(__name__)

TRANSPORT_ERRORS = (OperationalError, InterfaceError)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_document() -> ColumnElement[Any]:
    """The indexed full-text document of a blog row."""
    return func.blogs_search_text(col(BlogDB.title), col(BlogDB.summary), col(BlogDB.tags))


def search_query(query: str) -> ColumnElement[Any]:
    return func.plainto_tsquery(literal_column("'english'::regconfig"), query)


def visible() -> list[ColumnElement[bool]]:
    """Filters every anonymous read path shares."""
    return [
        col(BlogDB.deleted_at).is_(None),
        col(BlogDB.status) == BlogStatus.PUBLISHED.value,
    ]


class BlogRepository:
    """
    Repository for Blog database operations.

    Read methods return ``None`` for absent rows and skip soft-deleted rows
    unless asked otherwise. Transport failures surface as
    `UpstreamStoreFailure`; slug collisions as `DuplicateSlugError`.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize repository with database session.

        Args:
            session: Async database session
        """
        self.session = session

    async def _scalars(self, statement: Any) -> list[BlogDB]:
        try:
            result = await self.session.execute(statement)
        except TRANSPORT_ERRORS as e:
            raise UpstreamStoreFailure(diagnostic=str(e)) from e
        return list(result.scalars().all())

    async def _scalar(self, statement: Any) -> Any:
        try:
            return await self.session.scalar(statement)
        except TRANSPORT_ERRORS as e:
            raise UpstreamStoreFailure(diagnostic=str(e)) from e

    async def _flush(self, blog: BlogDB | None = None) -> None:
        """
        Flush pending changes, translating driver errors.

        Raises:
            DuplicateSlugError: If the slug unique index rejects the write
            UpstreamStoreFailure: On connection-level failures
        """
        try:
            await self.session.flush()
            if blog is not None:
                await self.session.refresh(blog)
        except IntegrityError as e:
            await self.session.rollback()
            error_msg = str(e.orig) if e.orig else str(e)
            if "slug" in error_msg.lower():
                raise DuplicateSlugError(blog.slug if blog else None) from e
            raise UpstreamStoreFailure(
                detail="Database integrity error",
                diagnostic=error_msg,
            ) from e
        except TRANSPORT_ERRORS as e:
            raise UpstreamStoreFailure(diagnostic=str(e)) from e

    async def reserve_id(self) -> int:
        """
        Take the next id from `blogs_id_seq` ahead of the insert.

        Blob keys embed the blog id, so uploads can run before the row
        exists. A reserved id that is never inserted is simply skipped.
        """
        return int(await self._scalar(select(BLOGS_ID_SEQ.next_value())))

    async def slug_exists(self, slug: str, exclude_id: int | None = None) -> bool:
        """
        Check whether a slug is taken, soft-deleted rows included.

        Args:
            slug: Candidate slug
            exclude_id: Blog to ignore, for renames

        Returns:
            bool: True if another row holds the slug
        """
        statement = select(col(BlogDB.id)).where(col(BlogDB.slug) == slug)
        if exclude_id is not None:
            statement = statement.where(col(BlogDB.id) != exclude_id)
        return await self._scalar(statement.limit(1)) is not None

    async def create(self, blog: BlogDB) -> BlogDB:
        """
        Insert a fully formed blog row.

        Args:
            blog: Row with its reserved id and real locators

        Returns:
            BlogDB: The refreshed row
        """
        self.session.add(blog)
        await self._flush(blog)
        logger.info("Blog row inserted", blog_id=blog.id, slug=blog.slug)
        return blog

    async def get_by_id(self, blog_id: int, *, include_deleted: bool = False) -> BlogDB | None:
        """
        Get blog by ID.

        Args:
            blog_id: Blog ID
            include_deleted: Also return a soft-deleted row

        Returns:
            BlogDB | None: Blog if found, None otherwise
        """
        statement = select(BlogDB).where(col(BlogDB.id) == blog_id)
        if not include_deleted:
            statement = statement.where(col(BlogDB.deleted_at).is_(None))
        rows = await self._scalars(statement)
        return rows[0] if rows else None

    async def get_by_slug(self, slug: str, *, include_deleted: bool = False) -> BlogDB | None:
        statement = select(BlogDB).where(col(BlogDB.slug) == slug)
        if not include_deleted:
            statement = statement.where(col(BlogDB.deleted_at).is_(None))
        rows = await self._scalars(statement)
        return rows[0] if rows else None

    async def list_blogs(
        self,
        *,
        offset: int = 0,
        limit: int = 20,
        status: str = BlogStatus.PUBLISHED.value,
        tags: Sequence[str] | None = None,
        search: str | None = None,
    ) -> tuple[list[BlogDB], int]:
        """
        Page through non-deleted blogs, newest first.

        Args:
            offset: Rows to skip
            limit: Page size
            status: Status to match, published unless overridden
            tags: Match rows sharing at least one of these tags
            search: Case-insensitive substring over title and summary

        Returns:
            tuple[list[BlogDB], int]: The page and the total match count
        """
        filters: list[ColumnElement[bool]] = [
            col(BlogDB.deleted_at).is_(None),
            col(BlogDB.status) == status,
        ]
        if tags:
            filters.append(col(BlogDB.tags).overlap(list(tags)))
        if search:
            pattern = f"%{escape_like(search)}%"
            filters.append(
                or_(
                    col(BlogDB.title).ilike(pattern, escape="\\"),
                    col(BlogDB.summary).ilike(pattern, escape="\\"),
                ),
            )

        statement = (
            select(BlogDB)
            .where(*filters)
            .order_by(desc(col(BlogDB.created_at)), desc(col(BlogDB.id)))
            .offset(offset)
            .limit(limit)
        )
        total_statement = select(func.count()).select_from(BlogDB).where(*filters)
        rows = await self._scalars(statement)
        total = int(await self._scalar(total_statement) or 0)
        return rows, total

    async def latest(self, limit: int = 10) -> list[BlogDB]:
        """Most recently created published blogs."""
        statement = (
            select(BlogDB)
            .where(*visible())
            .order_by(desc(col(BlogDB.created_at)), desc(col(BlogDB.id)))
            .limit(limit)
        )
        return await self._scalars(statement)

    async def popular(self, limit: int = 10) -> list[BlogDB]:
        """Most viewed published blogs."""
        statement = (
            select(BlogDB)
            .where(*visible())
            .order_by(desc(col(BlogDB.views)), desc(col(BlogDB.created_at)))
            .limit(limit)
        )
        return await self._scalars(statement)

    async def search(self, query: str, *, offset: int = 0, limit: int = 20) -> tuple[list[BlogDB], int]:
        """
        Full-text search over published blogs.

        Ranking and tokenization are PostgreSQL's: `plainto_tsquery` against
        the GIN-indexed `blogs_search_text` document, ordered by `ts_rank`
        and then recency.

        Args:
            query: Raw user query
            offset: Rows to skip
            limit: Page size

        Returns:
            tuple[list[BlogDB], int]: Ranked page and total match count
        """
        document = search_document()
        tsquery = search_query(query)
        filters = [*visible(), document.op("@@")(tsquery)]

        statement = (
            select(BlogDB)
            .where(*filters)
            .order_by(desc(func.ts_rank(document, tsquery)), desc(col(BlogDB.created_at)))
            .offset(offset)
            .limit(limit)
        )
        total_statement = select(func.count()).select_from(BlogDB).where(*filters)
        rows = await self._scalars(statement)
        total = int(await self._scalar(total_statement) or 0)
        logger.info("Search executed", query=query, total=total)
        return rows, total

    async def update(self, blog: BlogDB, changes: dict[str, Any]) -> BlogDB:
        """
        Apply column changes to a loaded row in one write.

        Args:
            blog: Row to update
            changes: Column name to new value

        Returns:
            BlogDB: The refreshed row
        """
        for key, value in changes.items():
            setattr(blog, key, value)
        blog.updated_at = datetime.now(tz=UTC)
        await self._flush(blog)
        return blog

    async def soft_delete(self, blog: BlogDB) -> BlogDB:
        """Mark a row deleted; every other column is left as is."""
        now = datetime.now(tz=UTC)
        blog.deleted_at = now
        blog.updated_at = now
        await self._flush(blog)
        return blog

    async def hard_delete(self, blog: BlogDB) -> None:
        """Remove the row for good."""
        await self.session.delete(blog)
        await self._flush()

    async def increment_views(self, blog_id: int) -> None:
        """Atomically add one view."""
        statement = (
            update(BlogDB)
            .where(col(BlogDB.id) == blog_id)
            .values(views=col(BlogDB.views) + 1)
        )
        try:
            await self.session.execute(statement)
        except TRANSPORT_ERRORS as e:
            raise UpstreamStoreFailure(diagnostic=str(e)) from e

    async def commit(self) -> None:
        """Commit the unit of work so callers can act on a durable row."""
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateSlugError from e
        except TRANSPORT_ERRORS as e:
            raise UpstreamStoreFailure(diagnostic=str(e)) from e
