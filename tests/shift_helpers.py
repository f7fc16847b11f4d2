from __future__ import annotations

import uuid

from app.comptoir.core.context import ShiftContext
from app.comptoir.core.security import get_pin_hash
from app.comptoir.db.models import Tenant, User

PIN = "4321"


def create_tenant_user(db_session, *, suffix: str, role: str = "CASHIER", is_active: bool = True):
    tenant = Tenant(id=uuid.uuid4(), name=f"Tenant {suffix}")
    user = User(
        id=uuid.uuid4(),
        tenant_id=tenant.id,
        username=f"user-{suffix}",
        display_name=f"Cashier {suffix}",
        hashed_pin=get_pin_hash(PIN),
        role=role,
        is_active=is_active,
    )
    db_session.add_all([tenant, user])
    db_session.commit()
    return tenant, user


def add_user(db_session, tenant, *, suffix: str, role: str = "CASHIER", is_active: bool = True):
    user = User(
        id=uuid.uuid4(),
        tenant_id=tenant.id,
        username=f"user-{suffix}",
        display_name=f"User {suffix}",
        hashed_pin=get_pin_hash(PIN),
        role=role,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


def shift_context(tenant, user=None, *, workstation_id: str = "main") -> ShiftContext:
    return ShiftContext(
        tenant_id=str(tenant.id),
        workstation_id=workstation_id,
        user_id=str(user.id) if user is not None else None,
        trace_id="trace-test",
    )


def login(client, username: str, pin: str = PIN) -> str:
    response = client.post("/auth/login", json={"username": username, "pin": pin})
    assert response.status_code == 200
    return response.json()["access_token"]


def auth_headers(token: str, *, workstation_id: str | None = None, idempotency_key: str | None = None) -> dict:
    headers = {"Authorization": f"Bearer {token}"}
    if workstation_id:
        headers["X-Workstation-ID"] = workstation_id
    if idempotency_key:
        headers["Idempotency-Key"] = idempotency_key
    return headers


def open_shift(client, token: str, starting_cash: str = "200.00", *, workstation_id: str | None = None):
    return client.post(
        "/pos/cash-shifts/open",
        headers=auth_headers(token, workstation_id=workstation_id),
        json={"starting_cash": starting_cash},
    )


def record_sale(
    client,
    token: str,
    *,
    total_amount: str,
    payment_method: str = "cash",
    paid_amount: str | None = None,
    workstation_id: str | None = None,
):
    payload = {"payment_method": payment_method, "total_amount": total_amount}
    if paid_amount is not None:
        payload["paid_amount"] = paid_amount
    return client.post("/pos/sales", headers=auth_headers(token, workstation_id=workstation_id), json=payload)
