"""Repository layer for database operations."""

from app.repositories.blog import BlogRepository

__all__ = ["BlogRepository"]
