"""FastAPI dependencies wiring the order service together."""

from functools import lru_cache

from fastapi import Depends
from libs.db.session import get_db_session_factory
from services.order_service.events import OrderEventPublisher, build_event_publisher
from services.order_service.services.admin_gateway import AdminOrderGateway
from services.order_service.services.order_lifecycle import OrderLifecycleManager
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


@lru_cache
def get_event_publisher() -> OrderEventPublisher:
    """Process-wide publisher; its in-flight tasks are drained on shutdown."""
    return build_event_publisher()


def get_order_manager(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_db_session_factory),
    events: OrderEventPublisher = Depends(get_event_publisher),
) -> OrderLifecycleManager:
    return OrderLifecycleManager(session_factory, events=events)


def get_admin_gateway(
    manager: OrderLifecycleManager = Depends(get_order_manager),
) -> AdminOrderGateway:
    return AdminOrderGateway(manager)
