"""Rate limiting configuration.

Uses slowapi. Storage defaults to in-memory; point RATE_LIMIT_STORAGE_URI at
Redis to share limits across service instances.
"""

from functools import lru_cache
from typing import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


def _get_client_ip(request: Request) -> str:
    """
    Get client IP from request, handling proxies.

    Checks X-Forwarded-For header first (for proxied requests),
    then falls back to direct connection IP.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First IP in the chain is the original client
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def _get_user_or_ip(request: Request) -> str:
    """
    Rate limit by user ID if authenticated, otherwise by IP.

    ``get_current_user`` stores the verified user on ``request.state``.
    """
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.user_id}"
    return f"ip:{_get_client_ip(request)}"


@lru_cache
def get_limiter() -> Limiter:
    """
    Create and return a cached Limiter instance.
    """
    settings = get_settings()

    return Limiter(
        key_func=_get_user_or_ip,
        default_limits=[settings.DEFAULT_RATE_LIMIT],
        storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        strategy="fixed-window",
        enabled=settings.RATE_LIMIT_ENABLED,
    )


limiter = get_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """
    429 in the shared error envelope, with a Retry-After header.

    ``exc.detail`` is the limit that tripped, e.g. ``10 per 1 minute``.
    """
    logger.warning("Rate limit %s hit by %s", exc.detail, _get_user_or_ip(request))
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests, slow down and try again shortly",
            "code": "RATE_LIMIT_EXCEEDED",
            "details": {"limit": exc.detail},
        },
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )


def order_create_limit(func: Callable) -> Callable:
    """Apply the checkout rate limit (ORDER_CREATE_RATE_LIMIT, default 10/minute)."""
    return limiter.limit(get_settings().ORDER_CREATE_RATE_LIMIT)(func)
