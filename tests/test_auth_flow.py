from app.comptoir.core.error_catalog import ErrorCatalog
from tests.shift_helpers import PIN, auth_headers, create_tenant_user, login


def test_login_with_pin_returns_token(client, db_session):
    _tenant, user = create_tenant_user(db_session, suffix="auth-ok")

    response = client.post("/auth/login", json={"username": user.username, "pin": PIN})

    assert response.status_code == 200
    payload = response.json()
    assert payload["token_type"] == "bearer"
    assert payload["access_token"]


def test_login_wrong_pin_rejected(client, db_session):
    _tenant, user = create_tenant_user(db_session, suffix="auth-bad")

    response = client.post("/auth/login", json={"username": user.username, "pin": "9999"})

    assert response.status_code == 401
    assert response.json()["code"] == ErrorCatalog.INVALID_CREDENTIALS.code


def test_login_inactive_user_forbidden(client, db_session):
    _tenant, user = create_tenant_user(db_session, suffix="auth-inactive", is_active=False)

    response = client.post("/auth/login", json={"username": user.username, "pin": PIN})

    assert response.status_code == 403
    assert response.json()["code"] == ErrorCatalog.USER_INACTIVE.code


def test_me_returns_current_user(client, db_session):
    tenant, user = create_tenant_user(db_session, suffix="auth-me")
    token = login(client, user.username)

    response = client.get("/auth/me", headers=auth_headers(token))

    assert response.status_code == 200
    payload = response.json()
    assert payload["id"] == str(user.id)
    assert payload["tenant_id"] == str(tenant.id)
    assert payload["role"] == "CASHIER"
    assert payload["display_name"] == user.display_name


def test_missing_token_is_unauthorized(client):
    response = client.get("/pos/cash-shifts/current")

    assert response.status_code == 401
    payload = response.json()
    assert payload["code"] == "UNAUTHORIZED"
    assert "trace_id" in payload


def test_garbage_token_is_invalid(client):
    response = client.get("/pos/cash-shifts/current", headers=auth_headers("not-a-jwt"))

    assert response.status_code == 401
    assert response.json()["code"] == ErrorCatalog.INVALID_TOKEN.code


def test_short_pin_fails_validation(client):
    response = client.post("/auth/login", json={"username": "someone", "pin": "12"})

    assert response.status_code == 422
    payload = response.json()
    assert payload["code"] == ErrorCatalog.VALIDATION_ERROR.code
    assert payload["details"]["errors"][0]["field"] == "pin"
