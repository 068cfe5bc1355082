# app/dependencies/dependencies.py

"""Application dependencies: shared collaborators, the blog service and API key auth."""

from dataclasses import dataclass
from typing import Annotated, Literal

from fastapi import Depends, Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.configs import settings
from app.configs.settings import MAX_FEED_SIZE, MAX_PAGE_SIZE, MAX_QUERY_LENGTH, MIN_QUERY_LENGTH
from app.db import get_session
from app.errors.auth import AuthenticationError
from app.managers import api_key_matches
from app.repositories import BlogRepository
from app.schemas.blog import parse_tags
from app.services import BlogService, ContentSanitizer, UrlIssuer, ViewCounter
from app.services.storage import BlobStore, KeyCodec


def get_blog_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> BlogRepository:
    """
    Resolve the `BlogRepository` dependency.

    Parameters
    ----------
    session : AsyncSession
        Database session.

    Returns
    -------
    BlogRepository
        Repository instance bound to the session.
    """
    return BlogRepository(session)


BlogRepoDep = Annotated[BlogRepository, Depends(get_blog_repository)]


def get_blob_store(request: Request) -> BlobStore:
    """Dependency to get the process-wide blob store."""
    return request.app.state.blob_store


def get_key_codec(request: Request) -> KeyCodec:
    return request.app.state.key_codec


def get_url_issuer(request: Request) -> UrlIssuer:
    return request.app.state.url_issuer


def get_sanitizer(request: Request) -> ContentSanitizer:
    return request.app.state.sanitizer


def get_view_counter(request: Request) -> ViewCounter:
    return request.app.state.view_counter


BlobStoreDep = Annotated[BlobStore, Depends(get_blob_store)]
KeyCodecDep = Annotated[KeyCodec, Depends(get_key_codec)]
UrlIssuerDep = Annotated[UrlIssuer, Depends(get_url_issuer)]
SanitizerDep = Annotated[ContentSanitizer, Depends(get_sanitizer)]
ViewCounterDep = Annotated[ViewCounter, Depends(get_view_counter)]


def get_blog_service(
    repo: BlogRepoDep,
    blob_store: BlobStoreDep,
    codec: KeyCodecDep,
    issuer: UrlIssuerDep,
    sanitizer: SanitizerDep,
    views: ViewCounterDep,
) -> BlogService:
    """
    Build the per-request `BlogService` from shared collaborators.

    Returns
    -------
    BlogService
        Coordinator bound to this request's repository.
    """
    return BlogService(
        repo=repo,
        blob_store=blob_store,
        codec=codec,
        issuer=issuer,
        sanitizer=sanitizer,
        views=views,
        content_extensions=settings.content_extensions,
    )


BlogServiceDep = Annotated[BlogService, Depends(get_blog_service)]


async def require_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """
    Reject requests whose `X-API-Key` header does not match `API_KEY`.

    An unset `API_KEY` rejects every request rather than allowing all.

    Raises
    ------
    AuthenticationError
        If the header is missing or wrong.
    """
    if not api_key_matches(x_api_key):
        raise AuthenticationError


ApiKeyDep = Depends(require_api_key)


@dataclass(frozen=True)
class BlogListQuery:
    """
    Query container for blog listing and filters.

    Parameters
    ----------
    page : int
        1-based page number.
    limit : int
        Page size.
    tags : list[str] | None
        Match blogs sharing at least one tag.
    search : str | None
        Substring filter over title and summary.
    status : Literal
        Status to list, published unless overridden.
    """

    page: int = 1
    limit: int = 20
    tags: list[str] | None = None
    search: str | None = None
    status: Literal["draft", "published", "archived"] = "published"


def get_blog_list_query(
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    limit: Annotated[
        int,
        Query(ge=1, le=MAX_PAGE_SIZE, description="Maximum number of records to return"),
    ] = 20,
    tags: Annotated[str | None, Query(description="Comma-separated tags")] = None,
    search: Annotated[
        str | None,
        Query(min_length=MIN_QUERY_LENGTH, max_length=MAX_QUERY_LENGTH, description="Text filter"),
    ] = None,
    status: Annotated[
        Literal["draft", "published", "archived"],
        Query(description="Status filter"),
    ] = "published",
) -> BlogListQuery:
    """
    Dependency to construct `BlogListQuery` from query parameters.

    Returns
    -------
    BlogListQuery
        Aggregated query parameters object.
    """
    return BlogListQuery(
        page=page,
        limit=limit,
        tags=parse_tags(tags) or None,
        search=search,
        status=status,
    )


BlogQueryListDep = Annotated[BlogListQuery, Depends(get_blog_list_query)]


@dataclass(frozen=True)
class FeedQuery:
    limit: int = 10


def get_feed_query(
    limit: Annotated[
        int,
        Query(ge=1, le=MAX_FEED_SIZE, description="Number of blogs to return"),
    ] = 10,
) -> FeedQuery:
    return FeedQuery(limit=limit)


FeedQueryDep = Annotated[FeedQuery, Depends(get_feed_query)]


@dataclass(frozen=True)
class SearchQuery:
    """Query container for full-text search."""

    query: str
    page: int = 1
    limit: int = 20


def get_search_query(
    query: Annotated[
        str,
        Query(min_length=MIN_QUERY_LENGTH, max_length=MAX_QUERY_LENGTH, description="Search terms"),
    ],
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    limit: Annotated[
        int,
        Query(ge=1, le=MAX_PAGE_SIZE, description="Maximum number of records to return"),
    ] = 20,
) -> SearchQuery:
    return SearchQuery(query=query.strip(), page=page, limit=limit)


SearchQueryDep = Annotated[SearchQuery, Depends(get_search_query)]
