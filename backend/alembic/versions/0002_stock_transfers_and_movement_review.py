"""stock transfers and movement review

Revision ID: 0002_transfers
Revises: 0001_initial
Create Date: 2026-10-19 14:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0002_transfers'
down_revision: Union[str, None] = '0001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _stamps(*names):
    columns = []
    for name in names:
        columns.append(sa.Column(f'{name}_at', sa.DateTime(timezone=True), nullable=True))
        columns.append(sa.Column(f'{name}_by', sa.String(), nullable=True))
    return columns


def upgrade() -> None:
    op.create_table(
        'stock_transfers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('reference_number', sa.String(50), nullable=False),
        sa.Column('from_warehouse_id', sa.Integer(), sa.ForeignKey('warehouses.id'), nullable=False),
        sa.Column('to_warehouse_id', sa.Integer(), sa.ForeignKey('warehouses.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('quantity_transferred', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('cancellation_reason', sa.String(500), nullable=True),
        *_stamps('approved', 'dispatched', 'completed', 'cancelled'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_by', sa.String(), nullable=True),
    )
    op.create_index('ix_stock_transfers_id', 'stock_transfers', ['id'])
    op.create_index('ix_stock_transfers_reference_number', 'stock_transfers', ['reference_number'], unique=True)
    op.create_index('ix_stock_transfers_from_warehouse_id', 'stock_transfers', ['from_warehouse_id'])
    op.create_index('ix_stock_transfers_to_warehouse_id', 'stock_transfers', ['to_warehouse_id'])
    op.create_index('ix_stock_transfers_product_id', 'stock_transfers', ['product_id'])
    op.create_index('ix_stock_transfers_status', 'stock_transfers', ['status'])
    op.create_index('ix_stock_transfers_created_by', 'stock_transfers', ['created_by'])

    with op.batch_alter_table('stock_movements') as batch_op:
        batch_op.add_column(sa.Column('rejected_by', sa.String(), nullable=True))
        batch_op.add_column(sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True))
        batch_op.add_column(sa.Column('rejection_reason', sa.String(500), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table('stock_movements') as batch_op:
        batch_op.drop_column('rejection_reason')
        batch_op.drop_column('rejected_at')
        batch_op.drop_column('rejected_by')

    op.drop_table('stock_transfers')
