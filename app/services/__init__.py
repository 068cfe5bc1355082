from app.services.blog import BlogService, Upload
from app.services.presigner import UrlIssuer
from app.services.sanitizer import ContentSanitizer
from app.services.views import ViewCounter

__all__ = ["BlogService", "ContentSanitizer", "Upload", "UrlIssuer", "ViewCounter"]
