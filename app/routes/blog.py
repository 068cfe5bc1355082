# app/routes/blog.py

"""
Blog Routes.

Provides listing, feeds, search and reads for published blogs, plus the
multipart create/update endpoints and both kinds of deletion.

Summary
-------
Endpoints include:
  - List blogs (with tag, text and status filters)
  - Latest and popular feeds
  - Full-text search
  - Get blog by slug
  - Get blog with its document inlined
  - Create blog (content document and optional cover image)
  - Update blog (metadata and optional replacement files)
  - Soft delete blog
  - Permanently delete blog and its stored files

Dependencies
------------
  - `BlogServiceDep`: Coordinator over the record store, blob store and URL issuer.
  - `ApiKeyDep`: Shared-secret `X-API-Key` check guarding every mutating route.

Rate Limiting
-------------
Reads share the public limit per client IP. Writes and deletes have their
own, lower limits, counted per API key.
"""

from pathlib import PurePosixPath
from typing import Annotated, Any, TypeVar

from fastapi import APIRouter, File, Form, Path, Request, UploadFile
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel, ValidationError
from starlette.responses import Response
from starlette.status import HTTP_201_CREATED

from app.configs import settings
from app.configs.settings import UPLOAD_EXTENSIONS
from app.dependencies import (
    ApiKeyDep,
    BlogQueryListDep,
    BlogServiceDep,
    FeedQueryDep,
    SearchQueryDep,
)
from app.errors import (
    FileTooLargeError,
    MissingContentFileError,
    UnsupportedFileTypeError,
    ValidationFailure,
)
from app.errors.validation import format_validation_errors
from app.managers import get_client_ip, limiter
from app.monitoring import get_logger
from app.schemas import (
    BlogContentEnvelope,
    BlogCreate,
    BlogEnvelope,
    BlogFeedEnvelope,
    BlogListEnvelope,
    BlogUpdate,
    ErrorEnvelope,
    MessageEnvelope,
)
from app.services import Upload
from app.utils.helpers import host

router = APIRouter(
    prefix="/api/blogs",
    tags=["📝 Blogs"],
    responses={
        400: {"model": ErrorEnvelope},
        404: {"model": ErrorEnvelope},
        500: {"model": ErrorEnvelope},
    },
)

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

BLOG_EXAMPLE: dict[str, Any] = {
    "id": 42,
    "title": "A Guide",
    "slug": "a-guide",
    "authorId": 7,
    "summary": "Everything you need to know",
    "tags": ["travel", "guide"],
    "contentUrl": "https://blog-content.s3.amazonaws.com/blogs/42/content.docx?X-Amz-Signature=...",
    "coverImageUrl": None,
    "readTime": 5,
    "views": 0,
    "likes": 0,
    "status": "published",
    "createdAt": "2025-01-01T00:00:00Z",
    "updatedAt": "2025-01-01T00:00:00Z",
}

PAGINATION_EXAMPLE = {"total": 1, "page": 1, "limit": 20, "totalPages": 1, "hasMore": False}

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {
        "description": "Validation failed",
        "content": {
            "application/json": {
                "example": {
                    "success": False,
                    "message": "Validation failed",
                    "errors": [{"field": "title", "message": "String should have at least 3 characters"}],
                },
            },
        },
    },
    429: {
        "description": "Rate limit exceeded",
        "content": {
            "application/json": {
                "example": {"success": False, "message": "Too many requests, please try again later."},
            },
        },
    },
    503: {
        "description": "A backing store is unavailable",
        "content": {
            "application/json": {
                "example": {"success": False, "message": "A storage service is temporarily unavailable"},
            },
        },
    },
}

NOT_FOUND_RESPONSE: dict[int | str, dict[str, Any]] = {
    404: {
        "description": "Not found",
        "content": {"application/json": {"example": {"success": False, "message": "Blog not found"}}},
    },
}

AUTH_RESPONSE: dict[int | str, dict[str, Any]] = {
    401: {
        "description": "Missing or wrong API key",
        "content": {
            "application/json": {"example": {"success": False, "message": "Invalid or missing API key"}},
        },
    },
}

CONFLICT_RESPONSE: dict[int | str, dict[str, Any]] = {
    409: {
        "description": "Slug taken",
        "content": {
            "application/json": {
                "example": {"success": False, "message": "A blog with this slug already exists"},
            },
        },
    },
}


def validate_form(model: type[M], fields: dict[str, Any]) -> M:
    """
    Validate multipart metadata fields against a pydantic model.

    Only fields the client actually sent are passed on, so defaults and
    "unset" tracking keep working.

    Raises
    ------
    ValidationFailure
        With one entry per offending field.
    """
    try:
        return model.model_validate({k: v for k, v in fields.items() if v is not None})
    except ValidationError as e:
        raise ValidationFailure(errors=format_validation_errors(list(e.errors()))) from e


async def read_upload(
    file: UploadFile | None,
    field: str,
    allowed_types: list[str],
) -> Upload | None:
    """
    Read and check one uploaded file.

    Parameters
    ----------
    file : UploadFile | None
        The multipart part, if sent.
    field : str
        Form field name, reported back on failure.
    allowed_types : list[str]
        Accepted MIME types; their extensions come from `UPLOAD_EXTENSIONS`.

    Returns
    -------
    Upload | None
        The file's bytes and metadata, or None when no file was sent.

    Raises
    ------
    UnsupportedFileTypeError
        If the MIME type or the extension is not accepted.
    FileTooLargeError
        If the file exceeds `MAX_FILE_SIZE`.
    """
    if file is None or not file.filename:
        return None

    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if content_type not in allowed_types:
        raise UnsupportedFileTypeError(field, content_type or "unknown", allowed_types)

    extension = PurePosixPath(file.filename).suffix.lower()
    allowed_extensions = [ext for mime in allowed_types for ext in UPLOAD_EXTENSIONS.get(mime, ())]
    if extension not in allowed_extensions:
        raise UnsupportedFileTypeError(field, extension or file.filename, allowed_extensions)

    # Read one byte past the limit so oversize files are caught without buffering them whole
    data = await file.read(settings.MAX_FILE_SIZE + 1)
    if len(data) > settings.MAX_FILE_SIZE:
        raise FileTooLargeError(field, settings.MAX_FILE_SIZE)

    return Upload(data=data, filename=file.filename, content_type=content_type)


@router.get(
    "",
    response_class=ORJSONResponse,
    response_model=BlogListEnvelope,
    summary="List blogs",
    description="List published blogs, newest first, with optional tag and text filters.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {"success": True, "data": [BLOG_EXAMPLE], "pagination": PAGINATION_EXAMPLE},
                },
            },
        },
        **ERROR_RESPONSES,
    },
    operation_id="blogs_list",
)
@limiter.limit(settings.RATE_LIMIT_PUBLIC_READ, key_func=get_client_ip)
async def list_blogs(
    request: Request,
    response: Response,
    query: BlogQueryListDep,
    service: BlogServiceDep,
) -> ORJSONResponse:
    """
    List blogs with pagination.

    Parameters
    ----------
    request : Request
        Current request context.
    response : Response
        Response object for the rate limiter.
    query : BlogListQuery
        Pagination and filter parameters.
    service : BlogService
        Blog coordinator.

    Returns
    -------
    ORJSONResponse
        Page of blogs and its pagination block.
    """
    data, pagination = await service.list_blogs(
        page=query.page,
        limit=query.limit,
        tags=query.tags,
        search=query.search,
        status=query.status,
    )
    return ORJSONResponse(content={"success": True, "data": data, "pagination": pagination})


@router.get(
    "/feed/latest",
    response_class=ORJSONResponse,
    response_model=BlogFeedEnvelope,
    summary="Latest blogs",
    description="Most recently created published blogs.",
    responses={
        200: {"content": {"application/json": {"example": {"success": True, "data": [BLOG_EXAMPLE], "count": 1}}}},
        **ERROR_RESPONSES,
    },
    operation_id="blogs_feed_latest",
)
@limiter.limit(settings.RATE_LIMIT_PUBLIC_READ, key_func=get_client_ip)
async def latest_blogs(
    request: Request,
    response: Response,
    feed: FeedQueryDep,
    service: BlogServiceDep,
) -> ORJSONResponse:
    """Return the latest published blogs."""
    data = await service.latest(feed.limit)
    return ORJSONResponse(content={"success": True, "data": data, "count": len(data)})


@router.get(
    "/feed/popular",
    response_class=ORJSONResponse,
    response_model=BlogFeedEnvelope,
    summary="Popular blogs",
    description="Published blogs ordered by view count.",
    responses={
        200: {"content": {"application/json": {"example": {"success": True, "data": [BLOG_EXAMPLE], "count": 1}}}},
        **ERROR_RESPONSES,
    },
    operation_id="blogs_feed_popular",
)
@limiter.limit(settings.RATE_LIMIT_PUBLIC_READ, key_func=get_client_ip)
async def popular_blogs(
    request: Request,
    response: Response,
    feed: FeedQueryDep,
    service: BlogServiceDep,
) -> ORJSONResponse:
    """Return the most viewed published blogs."""
    data = await service.popular(feed.limit)
    return ORJSONResponse(content={"success": True, "data": data, "count": len(data)})


@router.get(
    "/search",
    response_class=ORJSONResponse,
    response_model=BlogListEnvelope,
    summary="Search blogs",
    description="Full-text search over title, summary and tags of published blogs.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {"success": True, "data": [BLOG_EXAMPLE], "pagination": PAGINATION_EXAMPLE},
                },
            },
        },
        **ERROR_RESPONSES,
    },
    operation_id="blogs_search",
)
@limiter.limit(settings.RATE_LIMIT_PUBLIC_READ, key_func=get_client_ip)
async def search_blogs(
    request: Request,
    response: Response,
    search: SearchQueryDep,
    service: BlogServiceDep,
) -> ORJSONResponse:
    """
    Search published blogs.

    Parameters
    ----------
    request : Request
        Current request context.
    response : Response
        Response object for the rate limiter.
    search : SearchQuery
        Query text and pagination.
    service : BlogService
        Blog coordinator.

    Returns
    -------
    ORJSONResponse
        Ranked page of blogs and its pagination block.
    """
    data, pagination = await service.search(search.query, page=search.page, limit=search.limit)
    return ORJSONResponse(content={"success": True, "data": data, "pagination": pagination})


@router.get(
    "/{slug}",
    response_class=ORJSONResponse,
    response_model=BlogEnvelope,
    summary="Get blog by slug",
    description="Retrieve a published blog. The view is counted after the response is built.",
    responses={
        200: {"content": {"application/json": {"example": {"success": True, "data": BLOG_EXAMPLE}}}},
        **NOT_FOUND_RESPONSE,
        **ERROR_RESPONSES,
    },
    operation_id="blogs_get_by_slug",
)
@limiter.limit(settings.RATE_LIMIT_PUBLIC_READ, key_func=get_client_ip)
async def get_blog_by_slug(
    request: Request,
    response: Response,
    slug: Annotated[str, Path(max_length=200)],
    service: BlogServiceDep,
) -> ORJSONResponse:
    """
    Get blog by slug.

    Parameters
    ----------
    request : Request
        Current request context.
    response : Response
        Response object for the rate limiter.
    slug : str
        Blog slug.
    service : BlogService
        Blog coordinator.

    Returns
    -------
    ORJSONResponse
        Blog data with signed file links.

    Raises
    ------
    NotFoundError
        If the blog does not exist or was deleted.
    """
    data = await service.get_by_slug(slug)
    return ORJSONResponse(content={"success": True, "data": data})


@router.get(
    "/{slug}/content",
    response_class=ORJSONResponse,
    response_model=BlogContentEnvelope,
    summary="Get blog content",
    description="Retrieve a blog with its document inlined, base64-encoded for binary formats.",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {
                            **{k: v for k, v in BLOG_EXAMPLE.items() if k != "contentUrl"},
                            "content": "UEsDBBQABgAIAAAAIQ...",
                            "contentEncoding": "base64",
                            "contentType": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                        },
                    },
                },
            },
        },
        **NOT_FOUND_RESPONSE,
        **ERROR_RESPONSES,
    },
    operation_id="blogs_get_content",
)
@limiter.limit(settings.RATE_LIMIT_PUBLIC_READ, key_func=get_client_ip)
async def get_blog_content(
    request: Request,
    response: Response,
    slug: Annotated[str, Path(max_length=200)],
    service: BlogServiceDep,
) -> ORJSONResponse:
    """
    Get a blog with its stored document.

    Raises
    ------
    NotFoundError
        If the blog does not exist or was deleted.
    ContentFetchFailure
        If the document cannot be read from the blob store.
    """
    data = await service.get_content(slug)
    return ORJSONResponse(content={"success": True, "data": data})


@router.post(
    "",
    response_class=ORJSONResponse,
    response_model=BlogEnvelope,
    status_code=HTTP_201_CREATED,
    summary="Create a new blog post",
    description="Create a blog from metadata fields, a content document and an optional cover image.",
    dependencies=[ApiKeyDep],
    responses={
        201: {
            "content": {
                "application/json": {
                    "example": {"success": True, "message": "Blog created successfully", "data": BLOG_EXAMPLE},
                },
            },
        },
        **AUTH_RESPONSE,
        **CONFLICT_RESPONSE,
        **ERROR_RESPONSES,
    },
    operation_id="blogs_create",
)
@limiter.limit(settings.RATE_LIMIT_ADMIN_WRITE)
async def create_blog(
    request: Request,
    response: Response,
    service: BlogServiceDep,
    title: Annotated[str | None, Form()] = None,
    slug: Annotated[str | None, Form()] = None,
    author_id: Annotated[str | None, Form(alias="authorId")] = None,
    summary: Annotated[str | None, Form()] = None,
    tags: Annotated[str | None, Form(description="JSON array or comma-separated")] = None,
    read_time: Annotated[str | None, Form(alias="readTime")] = None,
    status: Annotated[str | None, Form()] = None,
    content: Annotated[UploadFile | None, File(description="Content document")] = None,
    cover: Annotated[UploadFile | None, File(description="Cover image")] = None,
) -> ORJSONResponse:
    """
    Create a new blog post.

    Parameters
    ----------
    request : Request
        Current request context.
    response : Response
        Response object for the rate limiter.
    service : BlogService
        Blog coordinator.
    title, slug, author_id, summary, tags, read_time, status : str | None
        Metadata form fields; the slug is derived from the title when omitted.
    content : UploadFile | None
        Content document, required.
    cover : UploadFile | None
        Cover image.

    Returns
    -------
    ORJSONResponse
        Created blog data.

    Raises
    ------
    ValidationFailure
        If a field or file is invalid.
    DuplicateSlugError
        If the slug is already taken.
    """
    meta = validate_form(
        BlogCreate,
        {
            "title": title,
            "slug": slug,
            "authorId": author_id,
            "summary": summary,
            "tags": tags,
            "readTime": read_time,
            "status": status,
        },
    )
    content_upload = await read_upload(content, "content", settings.ALLOWED_CONTENT_TYPES)
    if content_upload is None:
        raise MissingContentFileError
    cover_upload = await read_upload(cover, "cover", settings.ALLOWED_IMAGE_TYPES)

    data = await service.create(meta, content_upload, cover_upload)
    logger.info("Blog created via API", blog_id=data["id"], ip=host(request))
    return ORJSONResponse(
        status_code=HTTP_201_CREATED,
        content={"success": True, "message": "Blog created successfully", "data": data},
    )


@router.put(
    "/{blog_id}",
    response_class=ORJSONResponse,
    response_model=BlogEnvelope,
    summary="Update a blog post",
    description="Update metadata and optionally replace the content document and/or cover image.",
    dependencies=[ApiKeyDep],
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {"success": True, "message": "Blog updated successfully", "data": BLOG_EXAMPLE},
                },
            },
        },
        **AUTH_RESPONSE,
        **NOT_FOUND_RESPONSE,
        **CONFLICT_RESPONSE,
        **ERROR_RESPONSES,
    },
    operation_id="blogs_update",
)
@limiter.limit(settings.RATE_LIMIT_ADMIN_WRITE)
async def update_blog(
    request: Request,
    response: Response,
    blog_id: Annotated[int, Path(ge=1)],
    service: BlogServiceDep,
    title: Annotated[str | None, Form()] = None,
    slug: Annotated[str | None, Form()] = None,
    author_id: Annotated[str | None, Form(alias="authorId")] = None,
    summary: Annotated[str | None, Form()] = None,
    tags: Annotated[str | None, Form(description="JSON array or comma-separated")] = None,
    read_time: Annotated[str | None, Form(alias="readTime")] = None,
    status: Annotated[str | None, Form()] = None,
    views: Annotated[str | None, Form()] = None,
    likes: Annotated[str | None, Form()] = None,
    content: Annotated[UploadFile | None, File(description="Replacement content document")] = None,
    cover: Annotated[UploadFile | None, File(description="Replacement cover image")] = None,
) -> ORJSONResponse:
    """
    Update a blog post.

    Only the fields that were sent change. A replaced file's previous blob is
    deleted before the new one is stored.

    Returns
    -------
    ORJSONResponse
        Updated blog data.

    Raises
    ------
    NotFoundError
        If the blog does not exist or was deleted.
    DuplicateSlugError
        If the new slug is taken by another blog.
    """
    meta = validate_form(
        BlogUpdate,
        {
            "title": title,
            "slug": slug,
            "authorId": author_id,
            "summary": summary,
            "tags": tags,
            "readTime": read_time,
            "status": status,
            "views": views,
            "likes": likes,
        },
    )
    content_upload = await read_upload(content, "content", settings.ALLOWED_CONTENT_TYPES)
    cover_upload = await read_upload(cover, "cover", settings.ALLOWED_IMAGE_TYPES)

    data = await service.update(blog_id, meta, content_upload, cover_upload)
    return ORJSONResponse(content={"success": True, "message": "Blog updated successfully", "data": data})


@router.delete(
    "/{blog_id}",
    response_class=ORJSONResponse,
    response_model=MessageEnvelope,
    summary="Delete a blog post",
    description="Soft delete: the blog disappears from every read path, its files stay stored.",
    dependencies=[ApiKeyDep],
    responses={
        200: {"content": {"application/json": {"example": {"success": True, "message": "Blog deleted successfully"}}}},
        **AUTH_RESPONSE,
        **NOT_FOUND_RESPONSE,
        **ERROR_RESPONSES,
    },
    operation_id="blogs_delete",
)
@limiter.limit(settings.RATE_LIMIT_ADMIN_DELETE)
async def delete_blog(
    request: Request,
    response: Response,
    blog_id: Annotated[int, Path(ge=1)],
    service: BlogServiceDep,
) -> ORJSONResponse:
    """Soft delete a blog post."""
    await service.soft_delete(blog_id)
    return ORJSONResponse(content={"success": True, "message": "Blog deleted successfully"})


@router.delete(
    "/{blog_id}/permanent",
    response_class=ORJSONResponse,
    response_model=MessageEnvelope,
    summary="Permanently delete a blog post",
    description="Delete the blog's stored files, then its row. Works on soft-deleted blogs too.",
    dependencies=[ApiKeyDep],
    responses={
        200: {"content": {"application/json": {"example": {"success": True, "message": "Blog permanently deleted"}}}},
        **AUTH_RESPONSE,
        **NOT_FOUND_RESPONSE,
        **ERROR_RESPONSES,
    },
    operation_id="blogs_delete_permanent",
)
@limiter.limit(settings.RATE_LIMIT_ADMIN_DELETE)
async def permanently_delete_blog(
    request: Request,
    response: Response,
    blog_id: Annotated[int, Path(ge=1)],
    service: BlogServiceDep,
) -> ORJSONResponse:
    """
    Permanently delete a blog post.

    File cleanup is best-effort: a file that cannot be deleted is logged and
    the row is removed regardless.
    """
    await service.permanent_delete(blog_id)
    logger.info("Blog permanently deleted via API", blog_id=blog_id, ip=host(request))
    return ORJSONResponse(content={"success": True, "message": "Blog permanently deleted"})
