from app.routes.blog import router as blog_router
from app.routes.proxy import router as proxy_router

__all__ = [
    "blog_router",
    "proxy_router",
]
