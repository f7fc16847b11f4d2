"""initial cash shift schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


class GUID(sa.TypeDecorator):
    impl = sa.CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(sa.CHAR(36))


def _money(**kwargs):
    return sa.Numeric(12, 2, **kwargs)


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "users",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("tenant_id", GUID(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("hashed_pin", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="CASHIER"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("tenant_id", "username", name="uq_users_tenant_username"),
    )
    op.create_index("ix_users_tenant_id", "users", ["tenant_id"])

    op.create_table(
        "cash_shifts",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("tenant_id", GUID(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("workstation_id", sa.String(length=100), nullable=False),
        sa.Column("user_id", GUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="open"),
        sa.Column("starting_cash", _money(), nullable=False),
        sa.Column("total_cash_sales", _money(), nullable=False, server_default="0"),
        sa.Column("total_card_sales", _money(), nullable=False, server_default="0"),
        sa.Column("total_credit_sales", _money(), nullable=False, server_default="0"),
        sa.Column("total_sales", _money(), nullable=False, server_default="0"),
        sa.Column("transactions_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("opened_at", sa.DateTime(), nullable=False),
        sa.Column("closed_at", sa.DateTime(), nullable=True),
        sa.Column("closed_by_user_id", GUID(), nullable=True),
        sa.Column("actual_total", _money(), nullable=True),
        sa.Column("expected_total", _money(), nullable=True),
        sa.Column("difference", _money(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_cash_shifts_tenant_id", "cash_shifts", ["tenant_id"])
    op.create_index("ix_cash_shifts_user_id", "cash_shifts", ["user_id"])
    op.create_index("ix_cash_shifts_tenant_opened_at", "cash_shifts", ["tenant_id", "opened_at"])
    op.create_index(
        "uq_cash_shifts_open_workstation",
        "cash_shifts",
        ["tenant_id", "workstation_id"],
        unique=True,
        sqlite_where=sa.text("status = 'open'"),
        postgresql_where=sa.text("status = 'open'"),
    )

    op.create_table(
        "sales",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("tenant_id", GUID(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("workstation_id", sa.String(length=100), nullable=False),
        sa.Column("shift_id", GUID(), sa.ForeignKey("cash_shifts.id"), nullable=True),
        sa.Column("invoice_number", sa.String(length=50), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=False, server_default="cash"),
        sa.Column("total_amount", _money(), nullable=False),
        sa.Column("discount_amount", _money(), nullable=False, server_default="0"),
        sa.Column("tax_amount", _money(), nullable=False, server_default="0"),
        sa.Column("paid_amount", _money(), nullable=False),
        sa.Column("change_amount", _money(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="completed"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by_user_id", GUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("tenant_id", "invoice_number", name="uq_sales_tenant_invoice"),
    )
    op.create_index("ix_sales_tenant_id", "sales", ["tenant_id"])
    op.create_index("ix_sales_shift_id", "sales", ["shift_id"])
    op.create_index("ix_sales_tenant_created_at", "sales", ["tenant_id", "created_at"])

    op.create_table(
        "idempotency_records",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("tenant_id", GUID(), nullable=False),
        sa.Column("endpoint", sa.String(length=255), nullable=False),
        sa.Column("method", sa.String(length=10), nullable=False),
        sa.Column("idempotency_key", sa.String(length=255), nullable=False),
        sa.Column("request_hash", sa.String(length=64), nullable=False),
        sa.Column("state", sa.String(length=20), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=True),
        sa.Column("response_body", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("tenant_id", "endpoint", "method", "idempotency_key", name="uq_idempotency"),
    )
    op.create_index("ix_idempotency_records_tenant_id", "idempotency_records", ["tenant_id"])

    op.create_table(
        "audit_events",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("tenant_id", GUID(), nullable=False),
        sa.Column("user_id", GUID(), nullable=True),
        sa.Column("trace_id", sa.String(length=64), nullable=True),
        sa.Column("actor", sa.String(length=255), nullable=False),
        sa.Column("action", sa.String(length=255), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=True),
        sa.Column("before_payload", sa.JSON(), nullable=True),
        sa.Column("after_payload", sa.JSON(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("result", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_audit_events_tenant_id", "audit_events", ["tenant_id"])
    op.create_index("ix_audit_events_user_id", "audit_events", ["user_id"])
    op.create_index("ix_audit_events_trace_id", "audit_events", ["trace_id"])


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_table("idempotency_records")
    op.drop_table("sales")
    op.drop_index("uq_cash_shifts_open_workstation", table_name="cash_shifts")
    op.drop_table("cash_shifts")
    op.drop_table("users")
    op.drop_table("tenants")
