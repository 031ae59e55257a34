"""FastAPI application for the Order Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from libs.common.error_handler import add_exception_handlers
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.order_service.dependencies import get_event_publisher
from services.order_service.routers import (
    admin_orders_router,
    cart_router,
    orders_router,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Let in-flight notifications finish before the loop goes away
    publisher = get_event_publisher()
    if publisher.pending:
        logger.info("Waiting for %d notification(s) to finish", publisher.pending)
    await publisher.drain()


def create_app() -> FastAPI:
    """Create and configure the Order Service FastAPI app."""
    app = FastAPI(
        title="Order Service",
        version="0.1.0",
        description="Order placement, inventory consistency and fulfillment.",
        lifespan=lifespan,
    )

    # Add rate limiter state to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Add global exception handlers for consistent error responses
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "orders"}

    # Customer routes
    app.include_router(orders_router)
    app.include_router(cart_router)

    # Admin routes
    app.include_router(admin_orders_router, prefix="/admin")

    return app


app = create_app()
