"""Order metadata, cost/edit snapshot columns, invoice line snapshots

Revision ID: 20261017_pricing_snapshot
Revises: 20261001_wholesale_core
Create Date: 2026-10-17

This migration adds the optional columns of the schema contract
(wholesale.services.schema_service.OPTIONAL_COLUMNS):
1. Order header metadata: vendor_note, created_by_user_id, created_by_role, created_source
2. OrderLine category_name, case_cost_at_time and the edit overlay
   (edited_qty, edited_unit_price, removed)
3. InvoiceLine granularity and price/cost snapshots
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261017_pricing_snapshot'
down_revision = '20261001_wholesale_core'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.add_column(sa.Column('vendor_note', sa.Text(), nullable=True))
        batch_op.add_column(sa.Column('created_by_user_id', sa.String(length=64), nullable=True))
        batch_op.add_column(sa.Column('created_by_role', sa.String(length=16), nullable=True))
        batch_op.add_column(sa.Column('created_source', sa.String(length=64), nullable=True))

    with op.batch_alter_table('order_lines', schema=None) as batch_op:
        batch_op.add_column(sa.Column('category_name', sa.String(length=120), nullable=True))
        batch_op.add_column(sa.Column('case_cost_at_time', sa.Numeric(precision=14, scale=6), nullable=True))
        batch_op.add_column(sa.Column('edited_qty', sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column('edited_unit_price', sa.Numeric(precision=14, scale=6), nullable=True))
        batch_op.add_column(sa.Column('removed', sa.Boolean(), nullable=False, server_default='0'))

    with op.batch_alter_table('invoice_lines', schema=None) as batch_op:
        batch_op.add_column(sa.Column('category_name', sa.String(length=120), nullable=True))
        batch_op.add_column(sa.Column('is_manual', sa.Boolean(), nullable=False, server_default='0'))
        batch_op.add_column(sa.Column('units_per_case_snapshot', sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column('total_pieces', sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column('unit_price_snapshot', sa.Numeric(precision=14, scale=6), nullable=True))
        batch_op.add_column(sa.Column('case_price_snapshot', sa.Numeric(precision=14, scale=6), nullable=True))
        batch_op.add_column(sa.Column('line_total_snapshot', sa.Numeric(precision=14, scale=6), nullable=True))
        batch_op.add_column(sa.Column('case_cost', sa.Numeric(precision=14, scale=6), nullable=True))


def downgrade():
    with op.batch_alter_table('invoice_lines', schema=None) as batch_op:
        batch_op.drop_column('case_cost')
        batch_op.drop_column('line_total_snapshot')
        batch_op.drop_column('case_price_snapshot')
        batch_op.drop_column('unit_price_snapshot')
        batch_op.drop_column('total_pieces')
        batch_op.drop_column('units_per_case_snapshot')
        batch_op.drop_column('is_manual')
        batch_op.drop_column('category_name')

    with op.batch_alter_table('order_lines', schema=None) as batch_op:
        batch_op.drop_column('removed')
        batch_op.drop_column('edited_unit_price')
        batch_op.drop_column('edited_qty')
        batch_op.drop_column('case_cost_at_time')
        batch_op.drop_column('category_name')

    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.drop_column('created_source')
        batch_op.drop_column('created_by_role')
        batch_op.drop_column('created_by_user_id')
        batch_op.drop_column('vendor_note')
