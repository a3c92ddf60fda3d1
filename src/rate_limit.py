"""Request rate limiting (slowapi)."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def get_client_ip(request: Request) -> str:
    """Client address, taken from X-Forwarded-For only behind a trusted proxy."""
    if settings.trust_proxy_headers:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[settings.rate_limit_default],
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit {exc.detail} exceeded on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={"detail": RATE_LIMIT_MESSAGE, "retryAfter": exc.detail},
    )
