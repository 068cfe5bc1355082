"""Blog database model using SQLModel."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import cast

from pydantic import ConfigDict
from sqlalchemy import DDL, DateTime, Index, Integer, Sequence, Text, event, text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, SQLModel, String

BLOGS_ID_SEQ = Sequence("blogs_id_seq")

# Immutable wrapper so the full-text expression can back a GIN index
SEARCH_TEXT_FUNCTION = DDL(
    """
    CREATE OR REPLACE FUNCTION blogs_search_text(title text, summary text, tags text[])
    RETURNS tsvector
    LANGUAGE sql IMMUTABLE PARALLEL SAFE AS $$
        SELECT to_tsvector(
            'english'::regconfig,
            coalesce(title, '') || ' ' || coalesce(summary, '') || ' '
            || coalesce(array_to_string(tags, ' '), '')
        )
    $$
    """,
)
SEARCH_INDEX = DDL(
    "CREATE INDEX IF NOT EXISTS ix_blogs_search ON blogs "
    "USING gin (blogs_search_text(title, summary, tags))",
)


class BlogStatus(StrEnum):
    """Publication state; only published blogs are visible to anonymous readers."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


def _now() -> datetime:
    return datetime.now(tz=UTC)


class BlogDB(SQLModel, table=True):
    """
    Blog database model for PostgreSQL.

    `content_url` and `cover_image_url` hold canonical `s3://bucket/key`
    locators. Signed HTTPS links are produced at read time and never stored.
    A non-null `deleted_at` marks a soft-deleted row; its slug stays taken.
    """

    __tablename__ = cast("declared_attr[str]", "blogs")

    __table_args__ = (
        Index("ix_blogs_tags_gin", "tags", postgresql_using="gin"),
        Index("ix_blogs_status_created", "status", "created_at"),
        Index("ix_blogs_views", "views"),
    )

    # Primary key, also reserved ahead of the insert to derive blob keys
    id: int | None = Field(
        default=None,
        sa_column=Column(
            Integer,
            BLOGS_ID_SEQ,
            primary_key=True,
            server_default=BLOGS_ID_SEQ.next_value(),
        ),
        description="Blog ID",
    )

    # Required fields
    slug: str = Field(
        sa_column=Column(String(200), unique=True, nullable=False, index=True),
        description="URL-friendly slug, unique across deleted rows too",
    )
    title: str = Field(
        sa_column=Column(String(200), nullable=False),
        description="Blog title",
    )
    content_url: str = Field(
        sa_column=Column(Text, nullable=False),
        description="Canonical locator of the content document",
    )

    # Optional fields
    summary: str | None = Field(
        default=None,
        sa_column=Column(String(500)),
        description="Blog summary/excerpt",
    )
    author_id: int | None = Field(
        default=None,
        sa_column=Column(Integer, index=True),
        description="Author ID",
    )
    cover_image_url: str | None = Field(
        default=None,
        sa_column=Column(Text),
        description="Canonical locator of the cover image",
    )
    read_time: int | None = Field(
        default=None,
        description="Estimated reading time in minutes",
    )

    # Counters
    views: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default=text("0")),
        description="View count",
    )
    likes: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default=text("0")),
        description="Like count",
    )
    status: str = Field(
        default=BlogStatus.DRAFT.value,
        sa_column=Column(String(20), nullable=False, index=True),
        description="Blog status (draft, published, archived)",
    )

    tags: list[str] = Field(
        default_factory=list,
        sa_column=Column(ARRAY(Text), nullable=False, server_default=text("'{}'")),
        description="Blog tags for categorization",
    )

    # Timestamps (timezone-aware)
    created_at: datetime = Field(
        default_factory=_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
        description="Creation timestamp",
    )
    updated_at: datetime = Field(
        default_factory=_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Last update timestamp",
    )
    deleted_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), index=True),
        description="Soft-deletion timestamp",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 42,
                "slug": "a-guide",
                "title": "A Guide",
                "summary": "Everything you need to know",
                "tags": ["travel", "guide"],
                "content_url": "s3://blog-content/blogs/42/content.docx",
                "cover_image_url": None,
                "read_time": 5,
                "views": 0,
                "likes": 0,
                "status": "published",
            },
        },
    )


event.listen(
    BlogDB.__table__,  # type: ignore[arg-type]
    "before_create",
    SEARCH_TEXT_FUNCTION.execute_if(dialect="postgresql"),
)
event.listen(
    BlogDB.__table__,  # type: ignore[arg-type]
    "after_create",
    SEARCH_INDEX.execute_if(dialect="postgresql"),
)
