from collections.abc import MutableMapping
from datetime import datetime
from math import ceil
from typing import Any

from fastapi import FastAPI, Request
from fastapi.routing import APIRoute
from starlette.routing import BaseRoute, Match, Route


def host(request: Request) -> str:
    """Return the host IP address."""
    return request.client.host if request.client else "unknown"


def today_str() -> str:
    """Return the current local time as a string."""
    return datetime.now(datetime.now().astimezone().tzinfo).strftime(
        "%Y-%m-%d %H:%M:%S",
    )


def get_summary(request: Request) -> str | None:
    """Extract route summary from request."""

    scope: MutableMapping[str, Any] = request.scope
    app: FastAPI = scope["app"]
    routes: list[BaseRoute] = app.routes

    summary = None
    for route in routes:
        is_api_route = type(route) is APIRoute
        is_route = type(route) is Route
        if is_api_route and route.matches(scope)[0] == Match.FULL:
            summary = route.summary
            break
        if is_route and route.matches(scope)[0] == Match.FULL:
            summary = route.name
            break

    return summary


def page_to_offset(page: int, limit: int) -> int:
    """Convert a 1-based page number into a row offset."""
    return (page - 1) * limit


def pagination_meta(total: int, page: int, limit: int) -> dict[str, int | bool]:
    """
    Build the pagination block returned next to list payloads.

    Args:
        total: Total number of matching rows
        page: Current 1-based page
        limit: Page size

    Returns:
        dict: `total`, `page`, `limit`, `totalPages` and `hasMore`
    """
    total_pages = ceil(total / limit) if limit else 0
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": total_pages,
        "hasMore": page < total_pages,
    }
