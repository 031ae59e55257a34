"""Shared exception types and FastAPI handlers.

Services raise subclasses of ``ServiceError`` from their business logic; the
handlers below turn them into a uniform JSON envelope::

    {"detail": "...", "code": "INSUFFICIENT_STOCK", "details": {...}}
"""

from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from libs.common.logging import get_logger

logger = get_logger(__name__)


class ServiceError(Exception):
    """Base exception for errors a service reports to its callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "SERVICE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code, "details": self.details}


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s",
            exc.code,
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc.__cause__ or exc,
        )
    else:
        logger.info("%s: %s", exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code, content=jsonable_encoder(exc.to_dict())
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(
            {
                "detail": "Validation failed",
                "code": "VALIDATION_FAILED",
                "details": {"errors": exc.errors()},
            }
        ),
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Register the shared exception handlers on an app."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
