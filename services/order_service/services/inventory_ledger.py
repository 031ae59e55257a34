"""Inventory ledger: the only writer of product stock and sold counts.

Debits are a single conditional ``UPDATE ... WHERE stock >= :qty`` so two
checkouts racing for the last unit serialize on the product row instead of
reading and writing the counter in separate steps.
"""

import enum
import uuid
from typing import Optional

from libs.common.logging import get_logger
from services.order_service.errors import StockChangedError
from services.order_service.models import (
    InventoryMovement,
    InventoryMovementType,
    Product,
)
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class Availability(str, enum.Enum):
    OK = "ok"
    INSUFFICIENT = "insufficient"
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"


class InventoryLedger:
    """Atomic check/debit/credit over ``Product.stock``.

    All methods run inside the caller's session and transaction; the ledger
    never commits.
    """

    reference_type = "order"

    async def check_availability(
        self, db: AsyncSession, product_id: uuid.UUID, quantity: int
    ) -> Availability:
        """Read-only availability check. Advisory: ``debit`` re-checks atomically."""
        result = await db.execute(
            select(Product.stock, Product.is_active).where(Product.id == product_id)
        )
        row = result.one_or_none()
        if row is None:
            return Availability.NOT_FOUND
        if not row.is_active:
            return Availability.INACTIVE
        if row.stock < quantity:
            return Availability.INSUFFICIENT
        return Availability.OK

    async def debit(
        self,
        db: AsyncSession,
        product_id: uuid.UUID,
        quantity: int,
        *,
        reference_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Take ``quantity`` units out of stock, or raise ``StockChangedError``.

        Never clamps: if fewer than ``quantity`` units remain, no row changes.
        """
        if quantity <= 0:
            raise ValueError("Debit quantity must be positive")

        result = await db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(
                stock=Product.stock - quantity,
                sold_count=Product.sold_count + quantity,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info(
                "Debit of %d for product %s matched no row", quantity, product_id
            )
            raise StockChangedError(product_id, requested=quantity)

        self._record(db, product_id, InventoryMovementType.SALE, quantity, reference_id)
        logger.info("Debited %d from product %s", quantity, product_id)

    async def credit(
        self,
        db: AsyncSession,
        product_id: uuid.UUID,
        quantity: int,
        *,
        reference_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Reverse a prior debit on both stock and sold count."""
        if quantity <= 0:
            raise ValueError("Credit quantity must be positive")

        result = await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(
                stock=Product.stock + quantity,
                sold_count=Product.sold_count - quantity,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Order items keep a foreign key to the product, so this means the
            # row vanished underneath us.
            raise LookupError(f"Product {product_id} missing during credit")

        self._record(
            db, product_id, InventoryMovementType.RETURN, quantity, reference_id
        )
        logger.info("Credited %d to product %s", quantity, product_id)

    def _record(
        self,
        db: AsyncSession,
        product_id: uuid.UUID,
        movement_type: InventoryMovementType,
        quantity: int,
        reference_id: Optional[uuid.UUID],
    ) -> None:
        db.add(
            InventoryMovement(
                product_id=product_id,
                movement_type=movement_type,
                quantity=quantity,
                reference_type=self.reference_type if reference_id else None,
                reference_id=reference_id,
            )
        )
