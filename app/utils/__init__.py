"""Utility helper functions."""

from app.utils.helpers import (
    get_summary,
    host,
    page_to_offset,
    pagination_meta,
    today_str,
)

__all__ = [
    "get_summary",
    "host",
    "page_to_offset",
    "pagination_meta",
    "today_str",
]
