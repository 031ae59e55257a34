"""create_order_service_tables

Revision ID: 3f9a1c7e2b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c7e2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

order_status_enum = sa.Enum(
    'pending', 'processing', 'shipped', 'delivered', 'cancelled', 'refunded',
    name='store_order_status_enum',
)
payment_status_enum = sa.Enum(
    'pending', 'paid', 'failed', 'refunded', name='store_payment_status_enum'
)
movement_type_enum = sa.Enum(
    'sale', 'return', name='store_inventory_movement_type_enum'
)
audit_entity_type_enum = sa.Enum(
    'order', 'inventory', name='store_audit_entity_type_enum'
)


def upgrade() -> None:
    """Upgrade schema - Create catalog, cart, order and audit tables."""

    # Catalog
    op.create_table(
        'store_products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('stock', sa.Integer(), server_default='0', nullable=False),
        sa.Column('sold_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('stock >= 0', name=op.f('ck_store_products_non_negative_stock')),
        sa.CheckConstraint('sold_count >= 0', name=op.f('ck_store_products_non_negative_sold_count')),
        sa.CheckConstraint('price_cents >= 0', name=op.f('ck_store_products_non_negative_price')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_store_products')),
        sa.UniqueConstraint('slug', name=op.f('uq_store_products_slug')),
    )

    # Addresses
    op.create_table(
        'store_addresses',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('recipient_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('line1', sa.String(length=255), nullable=False),
        sa.Column('line2', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('postal_code', sa.String(length=20), nullable=True),
        sa.Column('country', sa.String(length=2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_store_addresses')),
    )
    op.create_index(op.f('ix_store_addresses_user_id'), 'store_addresses', ['user_id'])

    # Cart
    op.create_table(
        'store_cart_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('quantity > 0', name=op.f('ck_store_cart_items_positive_quantity')),
        sa.ForeignKeyConstraint(
            ['product_id'], ['store_products.id'],
            name=op.f('fk_store_cart_items_product_id_store_products'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_store_cart_items')),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_store_cart_items_user_product'),
    )
    op.create_index(op.f('ix_store_cart_items_user_id'), 'store_cart_items', ['user_id'])

    # Orders
    op.create_table(
        'store_orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_number', sa.String(length=40), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('address_id', sa.Uuid(), nullable=True),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('subtotal_cents', sa.Integer(), nullable=False),
        sa.Column('tax_cents', sa.Integer(), nullable=False),
        sa.Column('shipping_cents', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('status', order_status_enum, server_default='pending', nullable=False),
        sa.Column('payment_method', sa.String(length=50), server_default='COD', nullable=False),
        sa.Column('payment_status', payment_status_enum, server_default='pending', nullable=False),
        sa.Column('tracking_number', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('stock_restored_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('shipped_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'total_cents = subtotal_cents + tax_cents + shipping_cents',
            name=op.f('ck_store_orders_total_matches_parts'),
        ),
        sa.ForeignKeyConstraint(
            ['address_id'], ['store_addresses.id'],
            name=op.f('fk_store_orders_address_id_store_addresses'),
            ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_store_orders')),
    )
    op.create_index(op.f('ix_store_orders_order_number'), 'store_orders', ['order_number'], unique=True)
    op.create_index(op.f('ix_store_orders_user_id'), 'store_orders', ['user_id'])
    op.create_index('ix_store_orders_user_id_created_at', 'store_orders', ['user_id', 'created_at'])
    op.create_index('ix_store_orders_status_created_at', 'store_orders', ['status', 'created_at'])

    op.create_table(
        'store_order_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('product_image', sa.String(length=500), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('color', sa.String(length=50), nullable=True),
        sa.Column('size', sa.String(length=50), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('quantity > 0', name=op.f('ck_store_order_items_positive_quantity')),
        sa.ForeignKeyConstraint(
            ['order_id'], ['store_orders.id'],
            name=op.f('fk_store_order_items_order_id_store_orders'),
            ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['product_id'], ['store_products.id'],
            name=op.f('fk_store_order_items_product_id_store_products'),
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_store_order_items')),
    )
    op.create_index(op.f('ix_store_order_items_order_id'), 'store_order_items', ['order_id'])

    # Inventory movements
    op.create_table(
        'store_inventory_movements',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('movement_type', movement_type_enum, nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('reference_type', sa.String(length=30), nullable=True),
        sa.Column('reference_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('quantity > 0', name=op.f('ck_store_inventory_movements_positive_quantity')),
        sa.ForeignKeyConstraint(
            ['product_id'], ['store_products.id'],
            name=op.f('fk_store_inventory_movements_product_id_store_products'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_store_inventory_movements')),
    )
    op.create_index(
        op.f('ix_store_inventory_movements_product_id'),
        'store_inventory_movements',
        ['product_id'],
    )

    # Audit log
    op.create_table(
        'store_audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('entity_type', audit_entity_type_enum, nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('old_value', sa.JSON(), nullable=True),
        sa.Column('new_value', sa.JSON(), nullable=True),
        sa.Column('performed_by', sa.String(length=255), nullable=False),
        sa.Column('performed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_store_audit_logs')),
    )
    op.create_index('ix_store_audit_logs_entity', 'store_audit_logs', ['entity_type', 'entity_id'])


def downgrade() -> None:
    """Downgrade schema - Drop order service tables."""
    op.drop_index('ix_store_audit_logs_entity', table_name='store_audit_logs')
    op.drop_table('store_audit_logs')

    op.drop_index(op.f('ix_store_inventory_movements_product_id'), table_name='store_inventory_movements')
    op.drop_table('store_inventory_movements')

    op.drop_index(op.f('ix_store_order_items_order_id'), table_name='store_order_items')
    op.drop_table('store_order_items')

    op.drop_index('ix_store_orders_status_created_at', table_name='store_orders')
    op.drop_index('ix_store_orders_user_id_created_at', table_name='store_orders')
    op.drop_index(op.f('ix_store_orders_user_id'), table_name='store_orders')
    op.drop_index(op.f('ix_store_orders_order_number'), table_name='store_orders')
    op.drop_table('store_orders')

    op.drop_index(op.f('ix_store_cart_items_user_id'), table_name='store_cart_items')
    op.drop_table('store_cart_items')

    op.drop_index(op.f('ix_store_addresses_user_id'), table_name='store_addresses')
    op.drop_table('store_addresses')

    op.drop_table('store_products')

    bind = op.get_bind()
    for enum_type in (
        audit_entity_type_enum,
        movement_type_enum,
        payment_status_enum,
        order_status_enum,
    ):
        enum_type.drop(bind, checkfirst=True)
