# tests/repositories/test_blog_repository.py
"""Tests for app/repositories/blog.py module."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError, OperationalError

from app.errors.blog import DuplicateSlugError
from app.errors.storage import UpstreamStoreFailure
from app.models.blog import BlogDB
from app.repositories.blog import BlogRepository, escape_like


def make_session(rows: list[Any] | None = None, scalar: Any = None) -> MagicMock:
    """Async session double returning `rows` from execute and `scalar` from scalar."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows or []
    session = MagicMock()
    session.execute = AsyncMock(return_value=result)
    session.scalar = AsyncMock(return_value=scalar)
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.rollback = AsyncMock()
    session.commit = AsyncMock()
    session.delete = AsyncMock()
    return session


def compiled(mock: AsyncMock, call: int = 0) -> str:
    statement = mock.call_args_list[call].args[0]
    return str(statement.compile(dialect=postgresql.dialect()))


def slug_violation() -> IntegrityError:
    return IntegrityError(
        "INSERT INTO blogs",
        {},
        Exception('duplicate key value violates unique constraint "ix_blogs_slug"'),
    )


class TestEscapeLike:
    """Tests for LIKE escaping."""

    def test_wildcards_are_escaped(self) -> None:
        assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


class TestReads:
    """Tests for read statements."""

    @pytest.mark.asyncio
    async def test_reserve_id_uses_sequence(self) -> None:
        session = make_session(scalar=42)

        assert await BlogRepository(session).reserve_id() == 42
        assert "nextval('blogs_id_seq')" in compiled(session.scalar)

    @pytest.mark.asyncio
    async def test_slug_exists(self) -> None:
        session = make_session(scalar=3)
        assert await BlogRepository(session).slug_exists("a-guide") is True
        # Soft-deleted rows still hold their slug
        assert "deleted_at" not in compiled(session.scalar)

    @pytest.mark.asyncio
    async def test_slug_exists_excluding_self(self) -> None:
        session = make_session(scalar=None)
        assert await BlogRepository(session).slug_exists("a-guide", exclude_id=5) is False
        assert "blogs.id !=" in compiled(session.scalar)

    @pytest.mark.asyncio
    async def test_get_by_id_hides_deleted(self) -> None:
        blog = BlogDB(id=1, slug="a", title="A", content_url="s3://b/k")
        session = make_session(rows=[blog])

        assert await BlogRepository(session).get_by_id(1) is blog
        assert "blogs.deleted_at IS NULL" in compiled(session.execute)

    @pytest.mark.asyncio
    async def test_get_by_id_include_deleted(self) -> None:
        session = make_session(rows=[])

        assert await BlogRepository(session).get_by_id(1, include_deleted=True) is None
        assert "IS NULL" not in compiled(session.execute)

    @pytest.mark.asyncio
    async def test_list_with_tags_and_search(self) -> None:
        session = make_session(rows=[], scalar=0)

        rows, total = await BlogRepository(session).list_blogs(tags=["a", "b"], search="bali")

        assert (rows, total) == ([], 0)
        sql = compiled(session.execute)
        assert "blogs.tags &&" in sql
        assert "ILIKE" in sql.upper()
        assert "ORDER BY blogs.created_at DESC, blogs.id DESC" in sql
        assert "count(*)" in compiled(session.scalar)

    @pytest.mark.asyncio
    async def test_popular_orders_by_views(self) -> None:
        session = make_session(rows=[])

        await BlogRepository(session).popular(limit=5)

        sql = compiled(session.execute)
        assert "ORDER BY blogs.views DESC" in sql
        assert "blogs.status =" in sql

    @pytest.mark.asyncio
    async def test_search_uses_full_text_index(self) -> None:
        session = make_session(rows=[], scalar=0)

        await BlogRepository(session).search("packing list")

        sql = compiled(session.execute)
        assert "blogs_search_text(blogs.title, blogs.summary, blogs.tags) @@ plainto_tsquery" in sql
        assert "'english'::regconfig" in sql
        assert "ts_rank" in sql

    @pytest.mark.asyncio
    async def test_transport_failure(self) -> None:
        session = make_session()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

        with pytest.raises(UpstreamStoreFailure) as exc_info:
            await BlogRepository(session).latest()

        assert "connection refused" in exc_info.value.diagnostic  # type: ignore[operator]


class TestWrites:
    """Tests for write paths and error translation."""

    @pytest.mark.asyncio
    async def test_create_flushes_and_refreshes(self) -> None:
        session = make_session()
        blog = BlogDB(id=1, slug="a", title="A", content_url="s3://b/k")

        assert await BlogRepository(session).create(blog) is blog

        session.add.assert_called_once_with(blog)
        session.refresh.assert_awaited_once_with(blog)

    @pytest.mark.asyncio
    async def test_create_duplicate_slug(self) -> None:
        session = make_session()
        session.flush.side_effect = slug_violation()

        with pytest.raises(DuplicateSlugError):
            await BlogRepository(session).create(BlogDB(id=1, slug="a", title="A", content_url="s3://b/k"))

        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_integrity_error(self) -> None:
        session = make_session()
        session.flush.side_effect = IntegrityError("INSERT", {}, Exception("null value in column"))

        with pytest.raises(UpstreamStoreFailure):
            await BlogRepository(session).create(BlogDB(id=1, slug="a", title="A", content_url="s3://b/k"))

    @pytest.mark.asyncio
    async def test_update_applies_changes(self) -> None:
        session = make_session()
        blog = BlogDB(id=1, slug="a", title="A", content_url="s3://b/k")
        before = blog.updated_at

        await BlogRepository(session).update(blog, {"title": "B", "tags": ["x"]})

        assert blog.title == "B"
        assert blog.tags == ["x"]
        assert blog.updated_at >= before

    @pytest.mark.asyncio
    async def test_soft_delete_sets_timestamp(self) -> None:
        session = make_session()
        blog = BlogDB(id=1, slug="a", title="A", content_url="s3://b/k")

        await BlogRepository(session).soft_delete(blog)

        assert blog.deleted_at is not None
        assert blog.slug == "a"

    @pytest.mark.asyncio
    async def test_hard_delete(self) -> None:
        session = make_session()
        blog = BlogDB(id=1, slug="a", title="A", content_url="s3://b/k")

        await BlogRepository(session).hard_delete(blog)

        session.delete.assert_awaited_once_with(blog)
        session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_increment_views_is_atomic(self) -> None:
        session = make_session()

        await BlogRepository(session).increment_views(3)

        sql = compiled(session.execute)
        assert sql.startswith("UPDATE blogs SET views=(blogs.views +")
        assert "WHERE blogs.id =" in sql

    @pytest.mark.asyncio
    async def test_commit_integrity_error(self) -> None:
        session = make_session()
        session.commit.side_effect = slug_violation()

        with pytest.raises(DuplicateSlugError):
            await BlogRepository(session).commit()

    @pytest.mark.asyncio
    async def test_commit_transport_error(self) -> None:
        session = make_session()
        session.commit.side_effect = OperationalError("COMMIT", {}, Exception("gone"))

        with pytest.raises(UpstreamStoreFailure):
            await BlogRepository(session).commit()
