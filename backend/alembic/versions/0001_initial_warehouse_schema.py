"""initial warehouse schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def _soft_delete():
    return [
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_by', sa.String(), nullable=True),
    ]


def _stamps(*names):
    columns = []
    for name in names:
        columns.append(sa.Column(f'{name}_at', sa.DateTime(timezone=True), nullable=True))
        columns.append(sa.Column(f'{name}_by', sa.String(), nullable=True))
    return columns


def _order_money():
    return [
        sa.Column('subtotal', sa.Numeric(14, 2), nullable=False),
        sa.Column('tax_rate', sa.Numeric(7, 4), nullable=False),
        sa.Column('tax_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('shipping_cost', sa.Numeric(14, 2), nullable=False),
        sa.Column('discount_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(14, 2), nullable=False),
    ]


def _line_money(price_column: str):
    return [
        sa.Column(price_column, sa.Numeric(14, 4), nullable=False),
        sa.Column('discount_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('line_total', sa.Numeric(14, 2), nullable=False),
        sa.Column('discount_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('final_line_total', sa.Numeric(14, 2), nullable=False),
    ]


def _index(table: str, *columns: str, unique: bool = False):
    op.create_index(f'ix_{table}_{columns[0]}', table, list(columns), unique=unique)


def upgrade() -> None:
    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('table_name', sa.String(), nullable=False),
        sa.Column('record_id', sa.Integer(), nullable=False),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('changed_by', sa.String(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
    )
    _index('audit_log', 'id')

    op.create_table(
        'warehouses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    _index('warehouses', 'id')
    _index('warehouses', 'code', unique=True)
    _index('warehouses', 'created_by')

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('sku', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('unit_cost', sa.Numeric(14, 4), nullable=False),
        sa.Column('unit_price', sa.Numeric(14, 4), nullable=False),
        sa.Column('reorder_level', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        *_soft_delete(),
    )
    _index('products', 'id')
    _index('products', 'sku', unique=True)
    _index('products', 'created_by')

    op.create_table(
        'inventories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), sa.ForeignKey('warehouses.id'), nullable=False),
        sa.Column('quantity_on_hand', sa.Integer(), nullable=False),
        sa.Column('quantity_reserved', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('product_id', 'warehouse_id', name='_inventory_product_warehouse_uc'),
    )
    _index('inventories', 'id')
    _index('inventories', 'created_by')

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('reference_number', sa.String(50), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), sa.ForeignKey('warehouses.id'), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('movement_type', sa.String(30), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('quantity_moved', sa.Integer(), nullable=False),
        sa.Column('quantity_before', sa.Integer(), nullable=False),
        sa.Column('quantity_after', sa.Integer(), nullable=False),
        sa.Column('unit_cost', sa.Numeric(14, 4), nullable=True),
        sa.Column('total_value', sa.Numeric(14, 2), nullable=True),
        sa.Column('reason', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('related_document_type', sa.String(30), nullable=True),
        sa.Column('related_document_id', sa.Integer(), nullable=True),
        sa.Column('approved_by', sa.String(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    _index('stock_movements', 'id')
    _index('stock_movements', 'reference_number')
    _index('stock_movements', 'user_id')
    _index('stock_movements', 'created_by')

    op.create_table(
        'purchase_orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('po_number', sa.String(50), nullable=False),
        sa.Column('supplier_reference', sa.String(255), nullable=True),
        sa.Column('supplier_name', sa.String(255), nullable=False),
        sa.Column('supplier_email', sa.String(255), nullable=True),
        sa.Column('supplier_phone', sa.String(50), nullable=True),
        sa.Column('supplier_address', sa.Text(), nullable=True),
        sa.Column('supplier_contact_person', sa.String(255), nullable=True),
        sa.Column('warehouse_id', sa.Integer(), sa.ForeignKey('warehouses.id'), nullable=False),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('priority', sa.String(10), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        *_order_money(),
        sa.Column('expected_delivery_date', sa.Date(), nullable=True),
        *_stamps('submitted', 'approved', 'sent', 'received', 'closed', 'cancelled'),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('terms_and_conditions', sa.Text(), nullable=True),
        *_timestamps(),
        *_soft_delete(),
    )
    _index('purchase_orders', 'id')
    _index('purchase_orders', 'po_number', unique=True)
    _index('purchase_orders', 'status')
    _index('purchase_orders', 'created_by')

    op.create_table(
        'purchase_order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('purchase_order_id', sa.Integer(), sa.ForeignKey('purchase_orders.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('product_sku', sa.String(100), nullable=True),
        sa.Column('product_name', sa.String(255), nullable=True),
        sa.Column('quantity_ordered', sa.Integer(), nullable=False),
        sa.Column('quantity_received', sa.Integer(), nullable=False),
        sa.Column('quantity_rejected', sa.Integer(), nullable=False),
        sa.Column('quantity_pending', sa.Integer(), nullable=False),
        *_line_money('unit_cost'),
        sa.Column('item_status', sa.String(30), nullable=False),
        sa.Column('expected_delivery_date', sa.Date(), nullable=True),
        sa.Column('last_received_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('receiving_notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    _index('purchase_order_items', 'id')
    _index('purchase_order_items', 'purchase_order_id')
    _index('purchase_order_items', 'created_by')

    op.create_table(
        'sales_orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('so_number', sa.String(50), nullable=False),
        sa.Column('customer_reference', sa.String(255), nullable=True),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('customer_phone', sa.String(50), nullable=True),
        sa.Column('customer_address', sa.Text(), nullable=True),
        sa.Column('customer_contact_person', sa.String(255), nullable=True),
        sa.Column('warehouse_id', sa.Integer(), sa.ForeignKey('warehouses.id'), nullable=False),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('priority', sa.String(10), nullable=False),
        sa.Column('payment_status', sa.String(20), nullable=False),
        sa.Column('payment_terms', sa.String(255), nullable=True),
        sa.Column('currency', sa.String(3), nullable=False),
        *_order_money(),
        sa.Column('requested_delivery_date', sa.Date(), nullable=True),
        sa.Column('promised_delivery_date', sa.Date(), nullable=True),
        sa.Column('shipping_address', sa.Text(), nullable=True),
        sa.Column('shipping_method', sa.String(100), nullable=True),
        sa.Column('tracking_number', sa.String(100), nullable=True),
        sa.Column('carrier', sa.String(100), nullable=True),
        *_stamps('submitted', 'approved', 'confirmed', 'fulfilled', 'shipped', 'delivered', 'closed', 'cancelled'),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('customer_notes', sa.Text(), nullable=True),
        sa.Column('terms_and_conditions', sa.Text(), nullable=True),
        *_timestamps(),
        *_soft_delete(),
    )
    _index('sales_orders', 'id')
    _index('sales_orders', 'so_number', unique=True)
    _index('sales_orders', 'status')
    _index('sales_orders', 'created_by')

    op.create_table(
        'sales_order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sales_order_id', sa.Integer(), sa.ForeignKey('sales_orders.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('product_sku', sa.String(100), nullable=True),
        sa.Column('product_name', sa.String(255), nullable=True),
        sa.Column('quantity_ordered', sa.Integer(), nullable=False),
        sa.Column('allocated_quantity', sa.Integer(), nullable=False),
        sa.Column('quantity_fulfilled', sa.Integer(), nullable=False),
        sa.Column('quantity_shipped', sa.Integer(), nullable=False),
        sa.Column('quantity_backordered', sa.Integer(), nullable=False),
        sa.Column('quantity_pending', sa.Integer(), nullable=False),
        *_line_money('unit_price'),
        sa.Column('item_status', sa.String(30), nullable=False),
        sa.Column('fulfilled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('fulfillment_notes', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('customer_notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    _index('sales_order_items', 'id')
    _index('sales_order_items', 'sales_order_id')
    _index('sales_order_items', 'created_by')


def downgrade() -> None:
    for table in (
        'sales_order_items',
        'sales_orders',
        'purchase_order_items',
        'purchase_orders',
        'stock_movements',
        'inventories',
        'products',
        'warehouses',
        'audit_log',
    ):
        op.drop_table(table)
