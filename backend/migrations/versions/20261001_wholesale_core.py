"""Wholesale core: tenants, catalog, overrides, orders, invoices

Revision ID: 20261001_wholesale_core
Revises:
Create Date: 2026-10-01

This migration adds:
1. Distributor (tenant root), Vendor (buyer) and DistributorVendor link
2. Category and Product with unit/case pricing and stock in base units
3. VendorPriceOverride and BulkPriceOverride
4. Order / OrderLine with the required price snapshot columns
5. Invoice / InvoiceLine (reporting source)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261001_wholesale_core'
down_revision = None
branch_labels = None
depends_on = None


def _money(name, nullable=True):
    return sa.Column(name, sa.Numeric(precision=14, scale=6), nullable=nullable)


def _timestamp(name):
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False)


def upgrade():
    # ==========================================================================
    # 1. TENANTS AND BUYERS
    # ==========================================================================
    op.create_table('distributors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('distributors', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_distributors_code'), ['code'], unique=True)
        batch_op.create_index(batch_op.f('ix_distributors_is_active'), ['is_active'], unique=False)

    op.create_table('vendors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )

    op.create_table('distributor_vendors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('distributor_id', sa.Integer(), nullable=False),
        sa.Column('vendor_id', sa.Integer(), nullable=False),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('distributor_id', 'vendor_id', name='uq_distributor_vendors_pair'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('distributor_vendors', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_distributor_vendors_distributor_id'), ['distributor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_distributor_vendors_vendor_id'), ['vendor_id'], unique=False)

    # ==========================================================================
    # 2. CATALOG
    # ==========================================================================
    op.create_table('categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('distributor_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('distributor_id', 'name', name='uq_categories_distributor_name'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('categories', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_categories_distributor_id'), ['distributor_id'], unique=False)

    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('distributor_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        _money('sell_per_unit'),
        _money('sell_per_case'),
        _money('cost_per_unit'),
        _money('cost_per_case'),
        sa.Column('units_per_case', sa.Integer(), nullable=True),
        sa.Column('allow_unit', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('allow_case', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('stock_pieces', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.CheckConstraint('allow_unit OR allow_case', name='ck_products_some_granularity'),
        sa.CheckConstraint('stock_pieces >= 0', name='ck_products_stock_non_negative'),
        sa.CheckConstraint('units_per_case IS NULL OR units_per_case > 0', name='ck_products_units_per_case_positive'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('distributor_id', 'sku', name='uq_products_distributor_sku'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_products_distributor_id'), ['distributor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_products_category_id'), ['category_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_products_deleted_at'), ['deleted_at'], unique=False)
        batch_op.create_index('ix_products_distributor_name', ['distributor_id', 'name'], unique=False)

    # ==========================================================================
    # 3. PRICE OVERRIDES
    # ==========================================================================
    op.create_table('vendor_price_overrides',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('distributor_id', sa.Integer(), nullable=False),
        sa.Column('vendor_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        _money('price_per_unit'),
        _money('price_per_case'),
        _timestamp('updated_at'),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('distributor_id', 'vendor_id', 'product_id', name='uq_vendor_overrides_scope'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('vendor_price_overrides', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_vendor_price_overrides_distributor_id'), ['distributor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_vendor_price_overrides_vendor_id'), ['vendor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_vendor_price_overrides_product_id'), ['product_id'], unique=False)

    op.create_table('bulk_price_overrides',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('distributor_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        _money('price_per_unit'),
        _money('price_per_case'),
        _timestamp('updated_at'),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('distributor_id', 'product_id', name='uq_bulk_overrides_scope'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('bulk_price_overrides', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_bulk_price_overrides_distributor_id'), ['distributor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_bulk_price_overrides_product_id'), ['product_id'], unique=False)

    # ==========================================================================
    # 4. ORDERS
    # ==========================================================================
    op.create_table('orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('distributor_id', sa.Integer(), nullable=False),
        sa.Column('vendor_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='placed'),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_orders_distributor_id'), ['distributor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_vendor_id'), ['vendor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_created_at'), ['created_at'], unique=False)
        batch_op.create_index('ix_orders_distributor_status_created', ['distributor_id', 'status', 'created_at'], unique=False)

    op.create_table('order_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('line_number', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('order_unit', sa.String(length=8), nullable=False),
        sa.Column('qty', sa.Integer(), nullable=False),
        sa.Column('units_per_case_snapshot', sa.Integer(), nullable=True),
        sa.Column('total_pieces', sa.Integer(), nullable=False),
        _money('unit_price_snapshot'),
        _money('case_price_snapshot'),
        _money('selling_price_at_time', nullable=False),
        _money('line_total_snapshot', nullable=False),
        _money('cost_price_at_time'),
        _timestamp('created_at'),
        sa.CheckConstraint('qty > 0', name='ck_order_lines_qty_positive'),
        sa.CheckConstraint("order_unit IN ('unit', 'case')", name='ck_order_lines_order_unit'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id', 'line_number', name='uq_order_lines_order_line_number'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('order_lines', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_order_lines_order_id'), ['order_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_order_lines_product_id'), ['product_id'], unique=False)

    # ==========================================================================
    # 5. INVOICES
    # ==========================================================================
    op.create_table('invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('distributor_id', sa.Integer(), nullable=False),
        sa.Column('vendor_id', sa.Integer(), nullable=True),
        sa.Column('order_id', sa.Integer(), nullable=True),
        _timestamp('created_at'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('invoices', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_invoices_distributor_id'), ['distributor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_invoices_vendor_id'), ['vendor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_invoices_order_id'), ['order_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_invoices_created_at'), ['created_at'], unique=False)

    op.create_table('invoice_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=True),
        sa.Column('order_unit', sa.String(length=8), nullable=True),
        sa.Column('qty', sa.Integer(), nullable=True),
        _money('unit_price'),
        _money('unit_cost'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('invoice_lines', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_invoice_lines_invoice_id'), ['invoice_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_invoice_lines_product_id'), ['product_id'], unique=False)


def downgrade():
    op.drop_table('invoice_lines')
    op.drop_table('invoices')
    op.drop_table('order_lines')
    op.drop_table('orders')
    op.drop_table('bulk_price_overrides')
    op.drop_table('vendor_price_overrides')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('distributor_vendors')
    op.drop_table('vendors')
    op.drop_table('distributors')
