# app/dependencies/__init__.py

from app.dependencies.dependencies import (
    ApiKeyDep,
    BlobStoreDep,
    BlogListQuery,
    BlogQueryListDep,
    BlogRepoDep,
    BlogServiceDep,
    FeedQuery,
    FeedQueryDep,
    KeyCodecDep,
    SearchQuery,
    SearchQueryDep,
    get_blob_store,
    get_blog_repository,
    get_blog_service,
    get_key_codec,
    require_api_key,
)

__all__ = [
    "ApiKeyDep",
    "BlobStoreDep",
    "BlogListQuery",
    "BlogQueryListDep",
    "BlogRepoDep",
    "BlogServiceDep",
    "FeedQuery",
    "FeedQueryDep",
    "KeyCodecDep",
    "SearchQuery",
    "SearchQueryDep",
    "get_blob_store",
    "get_blog_repository",
    "get_blog_service",
    "get_key_codec",
    "require_api_key",
]
