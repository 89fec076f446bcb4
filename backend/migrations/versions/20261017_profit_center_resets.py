"""Profit center reset checkpoints

Revision ID: 20261017_profit_resets
Revises: 20261017_pricing_snapshot
Create Date: 2026-10-17

Adds profit_center_resets. Reports clamp their window to the latest reset of
the distributor; the table is optional in the schema contract, so a database
without it reports as if no reset was ever recorded.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261017_profit_resets'
down_revision = '20261017_pricing_snapshot'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('profit_center_resets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('distributor_id', sa.Integer(), nullable=False),
        sa.Column('reset_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('reset_from_date', sa.Date(), nullable=True),
        sa.Column('reset_to_date', sa.Date(), nullable=True),
        sa.Column('note', sa.String(length=500), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('profit_center_resets', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_profit_center_resets_distributor_id'), ['distributor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_profit_center_resets_reset_at'), ['reset_at'], unique=False)


def downgrade():
    with op.batch_alter_table('profit_center_resets', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_profit_center_resets_reset_at'))
        batch_op.drop_index(batch_op.f('ix_profit_center_resets_distributor_id'))

    op.drop_table('profit_center_resets')
