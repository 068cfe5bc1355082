"""
Blog schemas for the blog content API.

Request models validate the metadata part of the multipart create and
update forms. Response models describe the camelCase payloads and the
uniform `{success, data, pagination}` envelope.
"""

from datetime import datetime
from json import JSONDecodeError, loads
from re import match, sub
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from app.configs.settings import (
    MAX_SUMMARY_LENGTH,
    MAX_TAG_LENGTH,
    MAX_TAGS_COUNT,
    MAX_TITLE_LENGTH,
    MIN_TAG_LENGTH,
    MIN_TITLE_LENGTH,
)

BlogStatusLiteral = Literal["draft", "published", "archived"]

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


def slugify(title: str) -> str:
    """
    Derive a slug from a title.

    Examples
    --------
    >>> slugify("What to Pack: The Essentials!")
    'what-to-pack-the-essentials'
    """
    slug = title.lower()
    slug = sub(r"[^a-z0-9\s-]", "", slug)
    slug = sub(r"\s+", "-", slug)
    slug = sub(r"-+", "-", slug)
    return slug.strip("-")


def parse_tags(value: Any) -> list[str] | None:
    """
    Accept tags as a list, a JSON array string or a comma-separated string.

    Empty input yields an empty list; ``None`` stays ``None`` so updates can
    tell "not supplied" from "cleared".
    """
    if value is None:
        return None
    if isinstance(value, list):
        return [str(tag).strip() for tag in value if str(tag).strip()]
    if not isinstance(value, str):
        mssg = "Tags must be an array"
        raise ValueError(mssg)

    text = value.strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            parsed = loads(text)
        except JSONDecodeError as e:
            mssg = "Tags must be a JSON array or a comma-separated string"
            raise ValueError(mssg) from e
        if not isinstance(parsed, list):
            mssg = "Tags must be an array"
            raise ValueError(mssg)
        return [str(tag).strip() for tag in parsed if str(tag).strip()]
    return [tag.strip() for tag in text.split(",") if tag.strip()]


def check_tags(tags: list[str] | None) -> list[str] | None:
    if tags is None:
        return None
    if len(tags) > MAX_TAGS_COUNT:
        mssg = f"Cannot have more than {MAX_TAGS_COUNT} tags"
        raise ValueError(mssg)
    for tag in tags:
        if not MIN_TAG_LENGTH <= len(tag) <= MAX_TAG_LENGTH:
            mssg = f"Each tag must be between {MIN_TAG_LENGTH} and {MAX_TAG_LENGTH} characters"
            raise ValueError(mssg)
    # Order kept for display, duplicates dropped
    return list(dict.fromkeys(tags))


def check_slug(slug: str | None) -> str | None:
    if slug is not None and not match(SLUG_PATTERN, slug):
        mssg = "Slug must be lowercase alphanumeric with hyphens only"
        raise ValueError(mssg)
    return slug


class BlogFields(BaseModel):
    """Shared validation for the metadata fields of the create and update forms."""

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
    )

    @field_validator("tags", mode="before", check_fields=False)
    @classmethod
    def _parse_tags(cls, value: Any) -> list[str] | None:
        return check_tags(parse_tags(value))

    @field_validator("slug", check_fields=False)
    @classmethod
    def _check_slug(cls, value: str | None) -> str | None:
        return check_slug(value)

    @field_validator("summary", check_fields=False)
    @classmethod
    def _blank_summary(cls, value: str | None) -> str | None:
        return value or None


class BlogCreate(BlogFields):
    """Metadata for a new blog; the content file travels next to it."""

    title: str = Field(
        ...,
        min_length=MIN_TITLE_LENGTH,
        max_length=MAX_TITLE_LENGTH,
        description="Blog title",
        examples=["A Guide"],
    )
    slug: str | None = Field(
        default=None,
        max_length=MAX_TITLE_LENGTH,
        description="Blog slug (generated from the title when omitted)",
        examples=["a-guide"],
    )
    author_id: int | None = Field(default=None, ge=1, description="Author ID")
    summary: str | None = Field(default=None, max_length=MAX_SUMMARY_LENGTH)
    tags: list[str] = Field(default_factory=list, examples=[["travel", "guide"]])
    read_time: int | None = Field(default=None, ge=1, description="Reading time in minutes")
    status: BlogStatusLiteral = Field(default="draft", description="Blog status")

    @model_validator(mode="after")
    def generate_slug_from_title(self) -> "BlogCreate":
        """Auto-generate slug from title if not provided."""
        if not self.slug:
            generated = slugify(self.title)
            if not generated:
                mssg = "Could not generate valid slug from title"
                raise ValueError(mssg)
            self.slug = generated
        return self


class BlogUpdate(BlogFields):
    """Partial metadata update; only supplied fields are written."""

    title: str | None = Field(
        default=None,
        min_length=MIN_TITLE_LENGTH,
        max_length=MAX_TITLE_LENGTH,
    )
    slug: str | None = Field(default=None, max_length=MAX_TITLE_LENGTH)
    author_id: int | None = Field(default=None, ge=1)
    summary: str | None = Field(default=None, max_length=MAX_SUMMARY_LENGTH)
    tags: list[str] | None = None
    read_time: int | None = Field(default=None, ge=1)
    status: BlogStatusLiteral | None = None
    views: int | None = Field(default=None, ge=0)
    likes: int | None = Field(default=None, ge=0)

    def changes(self) -> dict[str, Any]:
        """Column values for the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True, by_alias=False)


class BlogRead(BaseModel):
    """Blog payload as served to clients, locators still unsigned."""

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        from_attributes=True,
    )

    id: int
    title: str
    slug: str
    author_id: int | None = None
    summary: str | None = None
    tags: list[str] = Field(default_factory=list)
    content_url: str | None = None
    cover_image_url: str | None = None
    read_time: int | None = None
    views: int = 0
    likes: int = 0
    status: BlogStatusLiteral
    created_at: datetime
    updated_at: datetime

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready camelCase dict."""
        return self.model_dump(mode="json", by_alias=True)


class BlogContentRead(BlogRead):
    """Blog payload with the document inlined."""

    content: str
    content_encoding: Literal["utf-8", "base64"] = "utf-8"
    content_type: str


class Pagination(BaseModel):
    """Pagination block returned next to list payloads."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    total: int
    page: int
    limit: int
    total_pages: int
    has_more: bool


class BlogEnvelope(BaseModel):
    """Single-blog success envelope."""

    success: bool = True
    message: str | None = None
    data: BlogRead


class BlogContentEnvelope(BaseModel):
    """Blog-with-content success envelope."""

    success: bool = True
    data: BlogContentRead


class BlogListEnvelope(BaseModel):
    """Paginated list success envelope."""

    success: bool = True
    data: list[BlogRead]
    pagination: Pagination


class BlogFeedEnvelope(BaseModel):
    """Feed success envelope."""

    success: bool = True
    data: list[BlogRead]
    count: int


class MessageEnvelope(BaseModel):
    """Success envelope carrying only a message."""

    success: bool = True
    message: str


class ErrorEnvelope(BaseModel):
    """Failure envelope."""

    success: bool = False
    message: str
    errors: list[dict[str, Any]] | None = None
    error: str | None = None
