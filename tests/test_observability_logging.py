import json
import logging

from starlette.requests import Request
from starlette.responses import Response

from app.comptoir.middleware.observability import build_request_log_payload
from tests.shift_helpers import auth_headers, create_tenant_user, login, open_shift


def _request(path: str = "/pos/cash-shifts/open") -> Request:
    request = Request({"type": "http", "method": "POST", "path": path, "headers": [], "query_string": b""})
    request.state.trace_id = "trace-log"
    request.state.tenant_id = "tenant-1"
    request.state.user_id = "user-1"
    request.state.workstation_id = "front"
    request.state.error_code = "SHIFT_ALREADY_OPEN"
    return request


def test_request_log_payload_fields():
    payload = build_request_log_payload(
        request=_request(),
        response=Response(status_code=409),
        latency_ms=12.3456,
    )

    assert payload["event"] == "http_request"
    assert payload["trace_id"] == "trace-log"
    assert payload["tenant_id"] == "tenant-1"
    assert payload["user_id"] == "user-1"
    assert payload["workstation_id"] == "front"
    assert payload["route"] == "/pos/cash-shifts/open"
    assert payload["method"] == "POST"
    assert payload["status_code"] == 409
    assert payload["latency_ms"] == 12.35
    assert payload["error_code"] == "SHIFT_ALREADY_OPEN"


def test_request_log_payload_without_response_defaults_to_500():
    payload = build_request_log_payload(request=_request(), response=None, latency_ms=1)

    assert payload["status_code"] == 500


def _events(caplog, logger_name: str) -> list[dict]:
    return [json.loads(record.getMessage()) for record in caplog.records if record.name == logger_name]


def test_shift_lifecycle_is_logged(client, db_session, caplog):
    caplog.set_level(logging.INFO, logger="comptoir")
    tenant, user = create_tenant_user(db_session, suffix="log-close")
    token = login(client, user.username)
    shift_id = open_shift(client, token, "200.00").json()["id"]

    client.post(
        f"/pos/cash-shifts/{shift_id}/close",
        headers=auth_headers(token),
        json={"actual_total": "210.00"},
    )

    events = _events(caplog, "comptoir.cash_shifts")
    opened = next(event for event in events if event["event"] == "cash_shift.opened")
    closed = next(event for event in events if event["event"] == "cash_shift.closed")
    assert opened["shift_id"] == shift_id
    assert opened["tenant_id"] == str(tenant.id)
    assert closed["variance"] == "surplus"
    assert closed["difference"] == "10.00"
    assert closed["app"] == "Comptoir POS"


def test_http_requests_are_logged(client, caplog):
    caplog.set_level(logging.INFO, logger="comptoir")

    client.get("/health", headers={"X-Trace-ID": "trace-http-log"})

    events = _events(caplog, "comptoir.request")
    assert any(event["trace_id"] == "trace-http-log" and event["route"] == "/health" for event in events)
