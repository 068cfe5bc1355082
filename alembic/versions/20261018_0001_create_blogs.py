"""
Create the blogs schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-18

This migration creates everything the blog content API needs:
- blogs_id_seq: reserved ahead of inserts so blob keys can carry the id
- blogs: blog records with canonical blob locators
- blogs_search_text(): immutable full-text document function
- ix_blogs_search: GIN index over that function
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# Revision identifiers, used by Alembic
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Apply schema changes for this revision."""
    op.execute(sa.schema.CreateSequence(sa.Sequence("blogs_id_seq")))

    op.create_table(
        "blogs",
        sa.Column(
            "id",
            sa.Integer(),
            server_default=sa.text("nextval('blogs_id_seq')"),
            nullable=False,
        ),
        sa.Column("slug", sa.String(length=200), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("content_url", sa.Text(), nullable=False),
        sa.Column("summary", sa.String(length=500), nullable=True),
        sa.Column("author_id", sa.Integer(), nullable=True),
        sa.Column("cover_image_url", sa.Text(), nullable=True),
        sa.Column("read_time", sa.Integer(), nullable=True),
        sa.Column("views", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("likes", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column(
            "tags",
            postgresql.ARRAY(sa.Text()),
            server_default=sa.text("'{}'"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.execute("ALTER SEQUENCE blogs_id_seq OWNED BY blogs.id")

    op.create_index("ix_blogs_slug", "blogs", ["slug"], unique=True)
    op.create_index("ix_blogs_author_id", "blogs", ["author_id"], unique=False)
    op.create_index("ix_blogs_status", "blogs", ["status"], unique=False)
    op.create_index("ix_blogs_created_at", "blogs", ["created_at"], unique=False)
    op.create_index("ix_blogs_deleted_at", "blogs", ["deleted_at"], unique=False)
    op.create_index("ix_blogs_views", "blogs", ["views"], unique=False)
    op.create_index("ix_blogs_status_created", "blogs", ["status", "created_at"], unique=False)
    op.create_index("ix_blogs_tags_gin", "blogs", ["tags"], unique=False, postgresql_using="gin")

    op.execute(
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
    op.execute(
        "CREATE INDEX ix_blogs_search ON blogs USING gin (blogs_search_text(title, summary, tags))",
    )


def downgrade() -> None:
    """Revert schema changes for this revision."""
    op.execute("DROP INDEX IF EXISTS ix_blogs_search")
    op.drop_index("ix_blogs_tags_gin", table_name="blogs")
    op.drop_index("ix_blogs_status_created", table_name="blogs")
    op.drop_index("ix_blogs_views", table_name="blogs")
    op.drop_index("ix_blogs_deleted_at", table_name="blogs")
    op.drop_index("ix_blogs_created_at", table_name="blogs")
    op.drop_index("ix_blogs_status", table_name="blogs")
    op.drop_index("ix_blogs_author_id", table_name="blogs")
    op.drop_index("ix_blogs_slug", table_name="blogs")
    op.drop_table("blogs")
    op.execute("DROP FUNCTION IF EXISTS blogs_search_text(text, text, text[])")
    op.execute("DROP SEQUENCE IF EXISTS blogs_id_seq")
