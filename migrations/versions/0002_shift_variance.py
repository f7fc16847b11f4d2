"""store variance classification on closed shifts

Revision ID: 0002_shift_variance
Revises: 0001_initial
Create Date: 2026-10-20 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_shift_variance"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("cash_shifts", sa.Column("variance", sa.String(length=10), nullable=True))
    op.add_column("cash_shifts", sa.Column("variance_tolerance", sa.Numeric(12, 2), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("cash_shifts") as batch_op:
        batch_op.drop_column("variance_tolerance")
        batch_op.drop_column("variance")
