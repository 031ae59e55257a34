"""Request tracing and access logging for the order service.

Every request gets an ``X-Request-ID`` (the caller's, or a fresh one) that is
bound to the logging context and echoed on the response. Completion lines
carry the status, duration and, once authenticated, the user id.
"""
import time
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.config import get_settings
from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

QUIET_PATHS = frozenset({"/health"})


def _user_id(request: Request) -> Optional[str]:
    # Set by get_current_user once the bearer token is verified
    user = getattr(request.state, "user", None)
    return getattr(user, "user_id", None)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind the request id and log how each request ended."""

    def __init__(self, app, slow_request_ms: Optional[float] = None):
        super().__init__(app)
        self.slow_request_ms = (
            slow_request_ms
            if slow_request_ms is not None
            else get_settings().SLOW_REQUEST_MS
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get("X-Request-ID"),
            path=request.url.path,
            method=request.method,
        )
        quiet = request.url.path in QUIET_PATHS
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled error after %.1f ms",
                (time.perf_counter() - started) * 1000,
                extra={"extra_fields": {"user_id": _user_id(request)}},
            )
            raise
        else:
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            if not quiet:
                self._log_completion(request, response.status_code, duration_ms)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_request_context()

    def _log_completion(
        self, request: Request, status_code: int, duration_ms: float
    ) -> None:
        fields = {
            "status_code": status_code,
            "duration_ms": duration_ms,
            "user_id": _user_id(request),
        }
        if status_code >= 500 or duration_ms >= self.slow_request_ms:
            level = "warning"
        elif status_code >= 400:
            level = "info"
        else:
            level = "debug" if request.method == "GET" else "info"

        getattr(logger, level)(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            status_code,
            duration_ms,
            extra={"extra_fields": fields},
        )


def add_observability_middleware(app: FastAPI) -> None:
    """Configure logging and install the request context middleware."""
    configure_logging()
    app.add_middleware(RequestContextMiddleware)
    logger.info("Observability middleware initialized")
