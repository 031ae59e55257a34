"""Order lifecycle: creation, cancellation, and admin status changes.

Each operation is one database transaction opened from the injected session
factory. Creation validates, prices, persists, debits and reconciles the cart
inside that transaction, so a failure at any step rolls every write back,
debits included. Events are published only after the commit.
"""

import uuid
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional, Union

import pydantic
from libs.auth.models import AuthUser
from libs.common.config import Settings, get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.order_service.errors import (
    AddressNotFoundError,
    InfrastructureError,
    InsufficientStockError,
    InvalidTransitionError,
    OrderNotFoundError,
    ProductNotFoundError,
    StockChangedError,
    ValidationError,
)
from services.order_service.events import (
    OrderEventPublisher,
    OrderPlaced,
    OrderShipped,
)
from services.order_service.models import (
    Address,
    AuditEntityType,
    Order,
    OrderItem,
    OrderStatus,
    Product,
)
from services.order_service.schemas import (
    MAX_PAGE_SIZE,
    OrderCreate,
    OrderFilter,
    OrderItemCreate,
    Pagination,
)
from services.order_service.services.audit import log_audit
from services.order_service.services.cart_reconciler import CartReconciler
from services.order_service.services.inventory_ledger import (
    Availability,
    InventoryLedger,
)
from services.order_service.services.pricing import (
    OrderTotals,
    PriceLine,
    PricingPolicy,
    calculate_totals,
)
from services.order_service.services.state_machine import (
    Transition,
    ensure_customer_cancellable,
    validate_admin_transition,
)
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

# Tracking numbers cannot be attached to orders in these states
NO_TRACKING_STATES = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})


@dataclass(frozen=True)
class _ResolvedLine:
    """A requested line plus the product data captured for it."""

    request: OrderItemCreate
    product_id: uuid.UUID
    product_name: str
    product_image: Optional[str]
    price_cents: int


@contextmanager
def _fail_closed(action: str):
    """Turn store failures into ``InfrastructureError``."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Database error while %s: %s", action, e, exc_info=True)
        raise InfrastructureError(f"Could not complete {action}; nothing was changed") from e


class OrderLifecycleManager:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        ledger: Optional[InventoryLedger] = None,
        reconciler: Optional[CartReconciler] = None,
        pricing_policy: Optional[PricingPolicy] = None,
        events: Optional[OrderEventPublisher] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.session_factory = session_factory
        self.ledger = ledger or InventoryLedger()
        self.reconciler = reconciler or CartReconciler()
        self.pricing_policy = pricing_policy or PricingPolicy.from_settings(settings)
        self.events = events or OrderEventPublisher()

        self.order_number_prefix = settings.ORDER_NUMBER_PREFIX
        self.order_number_attempts = max(1, settings.ORDER_NUMBER_MAX_ATTEMPTS)
        self.create_attempts = max(1, settings.ORDER_CREATE_MAX_ATTEMPTS)
        self.default_payment_method = settings.DEFAULT_PAYMENT_METHOD

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_order(
        self, user: AuthUser, request: Union[OrderCreate, dict]
    ) -> Order:
        """Place an order for ``user``.

        Raises AddressNotFoundError, ProductNotFoundError or
        InsufficientStockError for the first failing line in request order.
        A lost race on a debit retries the whole attempt; the retry normally
        reports plain InsufficientStockError.
        """
        request = self._validate_request(request)

        last_conflict: Optional[StockChangedError] = None
        for attempt in range(1, self.create_attempts + 1):
            try:
                with _fail_closed("order creation"):
                    order = await self._create_once(user, request)
            except StockChangedError as e:
                last_conflict = e
                logger.warning(
                    "Stock changed for product %s while ordering (attempt %d/%d)",
                    e.product_id,
                    attempt,
                    self.create_attempts,
                )
                continue
            break
        else:
            raise InsufficientStockError(
                last_conflict.product_id, requested=last_conflict.requested
            ) from last_conflict

        logger.info(
            "Created order %s for user %s (total=%d cents, %d item(s))",
            order.order_number,
            user.user_id,
            order.total_cents,
            len(order.items),
        )
        self.events.publish(OrderPlaced.from_order(order))
        return order

    def _validate_request(self, request: Union[OrderCreate, dict]) -> OrderCreate:
        if isinstance(request, OrderCreate):
            return request
        try:
            return OrderCreate.model_validate(request)
        except pydantic.ValidationError as e:
            raise ValidationError(
                "Invalid order request",
                details={
                    "errors": e.errors(
                        include_url=False, include_context=False, include_input=False
                    )
                },
            ) from e

    async def _create_once(self, user: AuthUser, request: OrderCreate) -> Order:
        async with self.session_factory() as db:
            async with db.begin():
                address = await self._get_owned_address(
                    db, user.user_id, request.address_id
                )
                lines = await self._resolve_lines(db, request.items)
                totals = calculate_totals(
                    (
                        PriceLine(line.price_cents, line.request.quantity)
                        for line in lines
                    ),
                    self.pricing_policy,
                )

                order = await self._insert_order(
                    db, user, request, address.id, lines, totals
                )

                # One global lock order across checkouts and restocks
                for line in sorted(lines, key=lambda line: line.product_id):
                    await self.ledger.debit(
                        db,
                        line.product_id,
                        line.request.quantity,
                        reference_id=order.id,
                    )

                await self.reconciler.reconcile(
                    db, user.user_id, [line.product_id for line in lines]
                )
                order = await self._load_order(db, order.id)
            return order

    async def _get_owned_address(
        self, db: AsyncSession, user_id: str, address_id: uuid.UUID
    ) -> Address:
        result = await db.execute(
            select(Address).where(Address.id == address_id, Address.user_id == user_id)
        )
        address = result.scalar_one_or_none()
        if not address:
            raise AddressNotFoundError(address_id)
        return address

    async def _resolve_lines(
        self, db: AsyncSession, items: list[OrderItemCreate]
    ) -> list[_ResolvedLine]:
        """Load products and check stock line by line, in request order.

        A product listed twice is checked against the running total
        requested so far.
        """
        requested: dict[uuid.UUID, int] = defaultdict(int)
        lines = []
        for item in items:
            requested[item.product_id] += item.quantity
            availability = await self.ledger.check_availability(
                db, item.product_id, requested[item.product_id]
            )
            if availability in (Availability.NOT_FOUND, Availability.INACTIVE):
                raise ProductNotFoundError(item.product_id)

            product = await db.get(Product, item.product_id)
            if availability == Availability.INSUFFICIENT:
                raise InsufficientStockError(
                    item.product_id,
                    requested=requested[item.product_id],
                    available=product.stock,
                )

            lines.append(
                _ResolvedLine(
                    request=item,
                    product_id=product.id,
                    product_name=product.name,
                    product_image=product.primary_image,
                    price_cents=product.price_cents,
                )
            )
        return lines

    async def _insert_order(
        self,
        db: AsyncSession,
        user: AuthUser,
        request: OrderCreate,
        address_id: uuid.UUID,
        lines: list[_ResolvedLine],
        totals: OrderTotals,
    ) -> Order:
        """Insert the order and its items under a fresh unique order number.

        Each try runs in a savepoint so a number collision only discards
        that insert, not the surrounding transaction.
        """
        for _ in range(self.order_number_attempts):
            order_number = Order.generate_order_number(self.order_number_prefix)
            order = Order(
                order_number=order_number,
                user_id=user.user_id,
                address_id=address_id,
                customer_email=str(user.email) if user.email else None,
                customer_name=user.display_name,
                subtotal_cents=totals.subtotal_cents,
                tax_cents=totals.tax_cents,
                shipping_cents=totals.shipping_cents,
                total_cents=totals.total_cents,
                status=OrderStatus.PENDING,
                payment_method=request.payment_method or self.default_payment_method,
                notes=request.notes,
                items=[
                    OrderItem(
                        product_id=line.product_id,
                        position=position,
                        product_name=line.product_name,
                        product_image=line.product_image,
                        quantity=line.request.quantity,
                        price_cents=line.price_cents,
                        total_cents=line.price_cents * line.request.quantity,
                        color=line.request.color,
                        size=line.request.size,
                        note=line.request.note,
                    )
                    for position, line in enumerate(lines)
                ],
            )
            try:
                async with db.begin_nested():
                    db.add(order)
                    await db.flush()
            except IntegrityError:
                taken = await db.scalar(
                    select(func.count())
                    .select_from(Order)
                    .where(Order.order_number == order_number)
                )
                if not taken:
                    raise
                logger.warning("Order number %s already taken, retrying", order_number)
                continue
            return order

        raise InfrastructureError("Could not allocate a unique order number")

    # ------------------------------------------------------------------
    # Cancellation and admin transitions
    # ------------------------------------------------------------------

    async def cancel_order(self, user_id: str, order_id: uuid.UUID) -> Order:
        """Customer cancellation of a pending order; restores its stock once."""
        with _fail_closed("order cancellation"):
            async with self.session_factory() as db:
                async with db.begin():
                    order = await self._load_order(
                        db, order_id, user_id=user_id, for_update=True
                    )
                    transition = ensure_customer_cancellable(order.status)
                    order = await self._apply_transition(
                        db, order, transition, actor=user_id, action="cancelled"
                    )

        logger.info("Order %s cancelled by customer %s", order.order_number, user_id)
        return order

    async def update_order_status(
        self,
        order_id: uuid.UUID,
        *,
        actor: str,
        status: Optional[OrderStatus] = None,
        tracking_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Order:
        """Admin status and/or tracking-number change.

        Financial fields are never touched. Moving to SHIPPED publishes an
        OrderShipped event after the commit.
        """
        if status is None and tracking_number is None:
            raise ValidationError("Provide a status or a tracking_number")
        if tracking_number is not None:
            tracking_number = tracking_number.strip()
            if not tracking_number:
                raise ValidationError("tracking_number must not be blank")

        transition: Optional[Transition] = None
        with _fail_closed("order status update"):
            async with self.session_factory() as db:
                async with db.begin():
                    order = await self._load_order(db, order_id, for_update=True)
                    if status is not None:
                        transition = validate_admin_transition(order.status, status)
                    elif order.status in NO_TRACKING_STATES:
                        raise InvalidTransitionError(
                            order.status,
                            order.status,
                            message=f"Cannot update tracking on a {order.status.value} order",
                        )

                    extra = {}
                    if tracking_number is not None:
                        extra["tracking_number"] = tracking_number

                    if transition:
                        order = await self._apply_transition(
                            db,
                            order,
                            transition,
                            actor=actor,
                            action="status_changed",
                            notes=notes,
                            **extra,
                        )
                    else:
                        order = await self._update_tracking(
                            db, order, tracking_number, actor=actor, notes=notes
                        )

        if transition:
            logger.info(
                "Order %s moved %s -> %s by %s",
                order.order_number,
                transition.current.value,
                transition.target.value,
                actor,
            )
            if transition.notify_shipped:
                self.events.publish(OrderShipped.from_order(order))
        return order

    async def _apply_transition(
        self,
        db: AsyncSession,
        order: Order,
        transition: Transition,
        *,
        actor: str,
        action: str,
        notes: Optional[str] = None,
        **extra,
    ) -> Order:
        now = utc_now()
        values = {"status": transition.target, "updated_at": now, **extra}
        if transition.timestamp_field:
            values[transition.timestamp_field] = now

        # Conditional on the status we validated against
        result = await db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status == transition.current)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidTransitionError(
                transition.current,
                transition.target,
                message="Order status changed concurrently",
            )

        restocked = False
        if transition.restock:
            restocked = await self._restock(db, order)

        new_value = {"status": transition.target.value, "restocked": restocked}
        if "tracking_number" in extra:
            new_value["tracking_number"] = extra["tracking_number"]
        log_audit(
            db,
            entity_type=AuditEntityType.ORDER,
            entity_id=order.id,
            action=action,
            performed_by=actor,
            old_value={
                "status": transition.current.value,
                "tracking_number": order.tracking_number,
            },
            new_value=new_value,
            notes=notes,
        )
        await db.flush()
        return await self._load_order(db, order.id)

    async def _update_tracking(
        self,
        db: AsyncSession,
        order: Order,
        tracking_number: str,
        *,
        actor: str,
        notes: Optional[str] = None,
    ) -> Order:
        log_audit(
            db,
            entity_type=AuditEntityType.ORDER,
            entity_id=order.id,
            action="tracking_updated",
            performed_by=actor,
            old_value={"tracking_number": order.tracking_number},
            new_value={"tracking_number": tracking_number},
            notes=notes,
        )
        order.tracking_number = tracking_number
        order.updated_at = utc_now()
        await db.flush()
        return order

    async def _restock(self, db: AsyncSession, order: Order) -> bool:
        """Credit every line back exactly once per order."""
        result = await db.execute(
            update(Order)
            .where(Order.id == order.id, Order.stock_restored_at.is_(None))
            .values(stock_restored_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning("Stock for order %s was already restored", order.order_number)
            return False

        for item in sorted(order.items, key=lambda item: item.product_id):
            await self.ledger.credit(
                db, item.product_id, item.quantity, reference_id=order.id
            )
        logger.info(
            "Restored stock for %d item(s) of order %s",
            len(order.items),
            order.order_number,
        )
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _load_order(
        self,
        db: AsyncSession,
        order_id: uuid.UUID,
        *,
        user_id: Optional[str] = None,
        for_update: bool = False,
    ) -> Order:
        query = (
            select(Order)
            .options(selectinload(Order.items), selectinload(Order.address))
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        if user_id is not None:
            query = query.where(Order.user_id == user_id)
        if for_update:
            query = query.with_for_update()

        order = (await db.execute(query)).scalar_one_or_none()
        if not order:
            raise OrderNotFoundError(order_id)
        return order

    async def get_order(
        self, order_id: uuid.UUID, *, user_id: Optional[str] = None
    ) -> Order:
        """Fetch one order; with ``user_id`` it must belong to that user."""
        with _fail_closed("order lookup"):
            async with self.session_factory() as db:
                return await self._load_order(db, order_id, user_id=user_id)

    async def list_orders(
        self,
        filters: Optional[OrderFilter] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Order], Pagination]:
        """Newest first, paginated. ``page_size`` is clamped to 1..100."""
        filters = filters or OrderFilter()
        page = max(1, page)
        page_size = min(max(1, page_size), MAX_PAGE_SIZE)

        conditions = []
        if filters.status is not None:
            conditions.append(Order.status == filters.status)
        if filters.user_id is not None:
            conditions.append(Order.user_id == filters.user_id)

        with _fail_closed("order listing"):
            async with self.session_factory() as db:
                total_count = await db.scalar(
                    select(func.count()).select_from(Order).where(*conditions)
                )
                result = await db.execute(
                    select(Order)
                    .options(selectinload(Order.items), selectinload(Order.address))
                    .where(*conditions)
                    .order_by(Order.created_at.desc(), Order.id)
                    .offset((page - 1) * page_size)
                    .limit(page_size)
                )
                orders = list(result.scalars().all())

        return orders, Pagination.build(page, page_size, total_count or 0)
