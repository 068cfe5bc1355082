# app/routes/proxy.py

"""
Stored-file proxy routes.

Serve a blog's stored document or image through the API so browsers never
need cross-origin access to the bucket.

Summary
-------
Endpoints include:
  - Get a content document (`content.html` or `content.docx`)
  - Get an image (`.jpg`, `.jpeg`, `.png`, `.webp`, `.svg`)

Rate Limiting
-------------
Both endpoints share the public read limit.
"""

from pathlib import PurePosixPath
from re import fullmatch
from typing import Annotated

from fastapi import APIRouter, Path, Request
from fastapi.responses import ORJSONResponse
from starlette.responses import Response
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND

from app.configs import settings
from app.dependencies import BlobStoreDep, KeyCodecDep
from app.errors import error_envelope
from app.managers import get_client_ip, limiter
from app.monitoring import get_logger
from app.schemas import ErrorEnvelope
from app.services.blog import content_type_for

router = APIRouter(
    prefix="/api",
    tags=["📦 Files"],
    responses={400: {"model": ErrorEnvelope}, 404: {"model": ErrorEnvelope}},
)

logger = get_logger(__name__)

CONTENT_FILENAMES = frozenset({"content.html", "content.docx"})
IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp", ".svg"})
IMAGE_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
}
FILENAME_PATTERN = r"[A-Za-z0-9][A-Za-z0-9_.-]*"

CONTENT_CACHE_CONTROL = "public, max-age=3600"
IMAGE_CACHE_CONTROL = "public, max-age=86400"


async def serve_blob(
    blob_store: BlobStoreDep,
    key: str,
    *,
    filename: str,
    blog_id: int,
    media_type: str,
    cache_control: str,
) -> Response:
    """
    Stream one stored object back, or answer 404 when it is absent.

    Raises
    ------
    ContentFetchFailure
        If the object exists but cannot be read.
    """
    if not await blob_store.exists(key):
        return ORJSONResponse(
            status_code=HTTP_404_NOT_FOUND,
            content=error_envelope(f"{filename} not found for blog {blog_id}"),
        )

    data = await blob_store.get(key)
    logger.info("Served file via proxy", key=key, size=len(data))
    return Response(
        content=data,
        media_type=media_type,
        headers={"Cache-Control": cache_control, "X-Content-Source": "S3-Proxy"},
    )


@router.get(
    "/content/{blog_id}/{filename}",
    summary="Get stored blog content",
    description="Stream a blog's stored document through the API.",
    responses={
        200: {"description": "The stored document"},
        400: {
            "description": "Filename not allowed",
            "content": {
                "application/json": {
                    "example": {"success": False, "message": "Only content.html and content.docx are allowed"},
                },
            },
        },
        404: {
            "description": "Not stored",
            "content": {
                "application/json": {"example": {"success": False, "message": "content.docx not found for blog 42"}},
            },
        },
    },
    operation_id="files_get_content",
)
@limiter.limit(settings.RATE_LIMIT_PUBLIC_READ, key_func=get_client_ip)
async def get_content_file(
    request: Request,
    response: Response,
    blog_id: Annotated[int, Path(ge=1)],
    filename: str,
    blob_store: BlobStoreDep,
    codec: KeyCodecDep,
) -> Response:
    """
    Serve a blog's content document.

    Parameters
    ----------
    request : Request
        Current request context.
    response : Response
        Response object for the rate limiter.
    blog_id : int
        Blog identifier.
    filename : str
        `content.html` or `content.docx`.
    blob_store : BlobStore
        Blob store dependency.
    codec : KeyCodec
        Key codec dependency.

    Returns
    -------
    Response
        The raw document, or a failure envelope.
    """
    if filename not in CONTENT_FILENAMES:
        return ORJSONResponse(
            status_code=HTTP_400_BAD_REQUEST,
            content=error_envelope("Only content.html and content.docx are allowed", error="Invalid filename"),
        )

    key = f"{codec.prefix(blog_id)}{filename}"
    return await serve_blob(
        blob_store,
        key,
        filename=filename,
        blog_id=blog_id,
        media_type=content_type_for(key),
        cache_control=CONTENT_CACHE_CONTROL,
    )


@router.get(
    "/images/{blog_id}/{filename}",
    summary="Get stored blog image",
    description="Stream a blog's stored image through the API.",
    responses={
        200: {"description": "The stored image"},
        400: {
            "description": "File type not allowed",
            "content": {
                "application/json": {"example": {"success": False, "message": "Only image files are allowed"}},
            },
        },
        404: {
            "description": "Not stored",
            "content": {
                "application/json": {"example": {"success": False, "message": "cover.png not found for blog 42"}},
            },
        },
    },
    operation_id="files_get_image",
)
@limiter.limit(settings.RATE_LIMIT_PUBLIC_READ, key_func=get_client_ip)
async def get_image_file(
    request: Request,
    response: Response,
    blog_id: Annotated[int, Path(ge=1)],
    filename: str,
    blob_store: BlobStoreDep,
    codec: KeyCodecDep,
) -> Response:
    """Serve a blog's image, typically its cover."""
    extension = PurePosixPath(filename).suffix.lower()
    if extension not in IMAGE_EXTENSIONS or not fullmatch(FILENAME_PATTERN, filename):
        return ORJSONResponse(
            status_code=HTTP_400_BAD_REQUEST,
            content=error_envelope("Only image files are allowed", error="Invalid file type"),
        )

    return await serve_blob(
        blob_store,
        f"{codec.prefix(blog_id)}{filename}",
        filename=filename,
        blog_id=blog_id,
        media_type=IMAGE_CONTENT_TYPES[extension],
        cache_control=IMAGE_CACHE_CONTROL,
    )
