"""add_materials_table

Revision ID: 3f2c9d1a7b64
Revises:
Create Date: 2026-10-12 09:14:22.481305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2c9d1a7b64'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema - Create the materials table."""

    conn = op.get_bind()
    inspector = sa.inspect(conn)

    if not inspector.has_table('materials'):
        op.create_table(
            'materials',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('material_id', sa.String(length=100), nullable=False),
            sa.Column('description', sa.String(length=500), nullable=True),
            sa.Column('manufacturer', sa.String(length=255), nullable=True),
            sa.Column('link', sa.Text(), nullable=True),
            sa.Column('items_per_unit', sa.Integer(), nullable=True),
            sa.Column('order_quantity', sa.Integer(), nullable=True),
            sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=True),
            sa.Column('stock', sa.Integer(), nullable=True),
            sa.Column('reorder_threshold', sa.Integer(), nullable=True),
            sa.Column('stock_state', sa.String(length=50), nullable=True),
            sa.Column('exclude_from_auto_order', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('order_status', sa.String(length=20), nullable=True),
            sa.Column('order_date', sa.DateTime(), nullable=True),
            sa.Column('ordered_quantity', sa.Integer(), nullable=True),
            sa.Column('requested_quantity', sa.Integer(), nullable=True),
            sa.Column('requested_at', sa.DateTime(), nullable=True),
            sa.Column('requested_from', sa.String(length=255), nullable=True),
            sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('material_id')
        )


def downgrade() -> None:
    """Downgrade schema - Drop the materials table."""
    op.drop_table('materials')
