from app.schemas.blog import (
    BlogContentEnvelope,
    BlogContentRead,
    BlogCreate,
    BlogEnvelope,
    BlogFeedEnvelope,
    BlogListEnvelope,
    BlogRead,
    BlogUpdate,
    ErrorEnvelope,
    MessageEnvelope,
    Pagination,
)

__all__ = [
    "BlogContentEnvelope",
    "BlogContentRead",
    "BlogCreate",
    "BlogEnvelope",
    "BlogFeedEnvelope",
    "BlogListEnvelope",
    "BlogRead",
    "BlogUpdate",
    "ErrorEnvelope",
    "MessageEnvelope",
    "Pagination",
]
