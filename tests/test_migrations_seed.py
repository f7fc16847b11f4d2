from sqlalchemy import inspect, text

from app.comptoir.core.config import settings
from app.comptoir.core.security import verify_pin
from app.comptoir.db.models import Tenant, User
from app.comptoir.db.seed import run_seed


def test_migrations_create_tables(db_session):
    tables = set(inspect(db_session.get_bind()).get_table_names())

    assert {"tenants", "users", "cash_shifts", "sales", "idempotency_records", "audit_events"} <= tables


def test_open_shift_partial_unique_index(db_session):
    row = db_session.execute(
        text("SELECT sql FROM sqlite_master WHERE type = 'index' AND name = 'uq_cash_shifts_open_workstation'")
    ).first()

    assert row is not None
    sql = row[0].upper()
    assert "UNIQUE" in sql
    assert "WHERE" in sql


def test_seed_is_idempotent(db_session):
    run_seed(db_session)
    run_seed(db_session)

    tenants = db_session.query(Tenant).filter(Tenant.name == settings.DEFAULT_TENANT_NAME).all()
    admins = db_session.query(User).filter(User.username == settings.ADMIN_USERNAME).all()
    assert len(tenants) == 1
    assert len(admins) == 1
    assert admins[0].role == "ADMIN"
    assert verify_pin(settings.ADMIN_PIN, admins[0].hashed_pin)


def test_seeded_admin_can_log_in(client, db_session):
    run_seed(db_session)

    response = client.post("/auth/login", json={"username": settings.ADMIN_USERNAME, "pin": settings.ADMIN_PIN})

    assert response.status_code == 200


def test_closed_shift_variance_columns(db_session):
    columns = {column["name"] for column in inspect(db_session.get_bind()).get_columns("cash_shifts")}

    assert {"variance", "variance_tolerance", "expected_total", "difference"} <= columns
