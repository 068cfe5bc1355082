from app.managers.rate_limiter import (
    api_key_matches,
    get_client_ip,
    get_identifier,
    limiter,
    rate_limit_exceeded_handler,
)

__all__ = [
    "api_key_matches",
    "get_client_ip",
    "get_identifier",
    "limiter",
    "rate_limit_exceeded_handler",
]
