"""Database models for the application."""

from app.models.blog import BLOGS_ID_SEQ, BlogDB, BlogStatus

__all__ = ["BLOGS_ID_SEQ", "BlogDB", "BlogStatus"]
