from datetime import datetime
from decimal import Decimal
import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from app.comptoir.core.error_catalog import AppError, ErrorCatalog
from app.comptoir.db.models import CashShift
from app.comptoir.services.cash_shifts import CashShiftService
from app.comptoir.services.reconciliation import Variance
from tests.shift_helpers import create_tenant_user, shift_context


class StubAggregator:
    def __init__(self, cash_sales: str = "0"):
        self.cash_sales = Decimal(cash_sales)
        self.contexts = []

    def todays_cash_sales(self, context):
        self.contexts.append(context)
        return self.cash_sales


def _service(db_session, cash_sales: str = "0", **kwargs) -> CashShiftService:
    return CashShiftService(db_session, aggregator=StubAggregator(cash_sales), **kwargs)


def _open(service, context, user, starting_cash="200.00"):
    return service.open_shift(
        context,
        user_id=str(user.id),
        user_name=user.display_name,
        starting_cash=Decimal(starting_cash),
    )


def test_open_starts_with_zero_totals(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-open")
    context = shift_context(tenant, user)

    shift = _open(_service(db_session), context, user, "100")

    assert shift.status == "open"
    assert shift.starting_cash == Decimal("100")
    assert shift.total_cash_sales == Decimal("0")
    assert shift.total_card_sales == Decimal("0")
    assert shift.total_credit_sales == Decimal("0")
    assert shift.total_sales == Decimal("0")
    assert shift.transactions_count == 0
    assert shift.closed_at is None
    assert shift.actual_total is None
    assert shift.workstation_id == "main"


def test_open_rejects_negative_starting_cash(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-neg")

    with pytest.raises(AppError) as excinfo:
        _open(_service(db_session), shift_context(tenant, user), user, "-5")

    assert excinfo.value.error.code == ErrorCatalog.VALIDATION_ERROR.code


def test_second_open_on_same_workstation_rejected(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-dup")
    context = shift_context(tenant, user)
    service = _service(db_session)
    first = _open(service, context, user)

    with pytest.raises(AppError) as excinfo:
        _open(service, context, user)

    assert excinfo.value.error.code == ErrorCatalog.SHIFT_ALREADY_OPEN.code
    assert excinfo.value.details["shift_id"] == str(first.id)


def test_other_workstation_can_open_its_own_shift(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-ws")
    service = _service(db_session)
    front = _open(service, shift_context(tenant, user, workstation_id="front"), user)
    back = _open(service, shift_context(tenant, user, workstation_id="back"), user)

    assert front.id != back.id
    assert service.get_open_shift(shift_context(tenant, user, workstation_id="front")).id == front.id
    assert service.get_open_shift(shift_context(tenant, user, workstation_id="back")).id == back.id


def test_concurrent_open_race_maps_to_already_open(db_session, monkeypatch):
    tenant, user = create_tenant_user(db_session, suffix="svc-race")
    context = shift_context(tenant, user)
    winner = _open(_service(db_session), context, user)

    service = _service(db_session)
    real_get_open = service.repo.get_open
    calls = {"count": 0}

    def stale_get_open(**kwargs):
        calls["count"] += 1
        if calls["count"] == 1:
            return None
        return real_get_open(**kwargs)

    monkeypatch.setattr(service.repo, "get_open", stale_get_open)

    with pytest.raises(AppError) as excinfo:
        _open(service, context, user)

    assert excinfo.value.error.code == ErrorCatalog.SHIFT_ALREADY_OPEN.code
    assert excinfo.value.details["shift_id"] == str(winner.id)
    assert db_session.query(CashShift).filter(CashShift.tenant_id == tenant.id).count() == 1


def test_integrity_error_without_open_winner_propagates(db_session, monkeypatch):
    tenant, user = create_tenant_user(db_session, suffix="svc-integrity")
    service = _service(db_session)

    def failing_create(shift):
        raise IntegrityError("INSERT INTO cash_shifts", {}, Exception("boom"))

    monkeypatch.setattr(service.repo, "create", failing_create)

    with pytest.raises(IntegrityError):
        _open(service, shift_context(tenant, user), user)


@pytest.mark.parametrize(
    ("actual", "difference", "variance"),
    [
        ("550.50", Decimal("0.00"), Variance.EXACT),
        ("560.00", Decimal("9.50"), Variance.SURPLUS),
        ("540.00", Decimal("-10.50"), Variance.SHORTAGE),
    ],
)
def test_close_records_difference_and_variance(db_session, actual, difference, variance):
    tenant, user = create_tenant_user(db_session, suffix=f"svc-close-{actual}")
    context = shift_context(tenant, user)
    service = _service(db_session, cash_sales="350.50")
    shift = _open(service, context, user, "200")

    closed = service.close_shift(context, str(shift.id), actual_total=Decimal(actual), notes="counted")

    assert closed.status == "closed"
    assert closed.closed_at is not None
    assert closed.actual_total == Decimal(actual)
    assert closed.expected_total == Decimal("550.50")
    assert closed.difference == difference
    assert closed.notes == "counted"
    assert str(closed.closed_by_user_id) == str(user.id)
    assert service.variance_of(closed) is variance


def test_close_aggregates_sales_for_shift_workstation(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-agg")
    context = shift_context(tenant, user, workstation_id="till-2")
    aggregator = StubAggregator("10")
    service = CashShiftService(db_session, aggregator=aggregator)
    shift = _open(service, context, user, "5")

    service.close_shift(shift_context(tenant, user, workstation_id="other"), str(shift.id), actual_total="15")

    assert aggregator.contexts[-1].workstation_id == "till-2"
    assert aggregator.contexts[-1].tenant_id == str(tenant.id)


def test_close_twice_fails_without_mutation(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-twice")
    context = shift_context(tenant, user)
    service = _service(db_session, cash_sales="0")
    shift = _open(service, context, user, "100")
    closed = service.close_shift(context, str(shift.id), actual_total="100", notes="first")
    closed_at = closed.closed_at

    with pytest.raises(AppError) as excinfo:
        service.close_shift(context, str(shift.id), actual_total="999", notes="second")

    assert excinfo.value.error.code == ErrorCatalog.NO_OPEN_SHIFT.code
    db_session.expire_all()
    reloaded = db_session.get(CashShift, shift.id)
    assert reloaded.actual_total == Decimal("100")
    assert reloaded.notes == "first"
    assert reloaded.closed_at == closed_at


@pytest.mark.parametrize("shift_id", [str(uuid.uuid4()), "not-a-uuid"])
def test_close_unknown_shift_is_state_error(db_session, shift_id):
    tenant, user = create_tenant_user(db_session, suffix=f"svc-unknown-{shift_id[:8]}")

    with pytest.raises(AppError) as excinfo:
        _service(db_session).close_shift(shift_context(tenant, user), shift_id, actual_total="10")

    assert excinfo.value.error.code == ErrorCatalog.NO_OPEN_SHIFT.code


def test_close_shift_of_other_tenant_is_state_error(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-tenant-a")
    other_tenant, other_user = create_tenant_user(db_session, suffix="svc-tenant-b")
    shift = _open(_service(db_session), shift_context(tenant, user), user)

    with pytest.raises(AppError) as excinfo:
        _service(db_session).close_shift(shift_context(other_tenant, other_user), str(shift.id), actual_total="1")

    assert excinfo.value.error.code == ErrorCatalog.NO_OPEN_SHIFT.code


def test_no_open_shift_after_close_until_reopened(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-reopen")
    context = shift_context(tenant, user)
    service = _service(db_session)
    shift = _open(service, context, user)
    service.close_shift(context, str(shift.id), actual_total="200")

    assert service.get_open_shift(context) is None

    reopened = _open(service, context, user, "50")
    assert service.get_open_shift(context).id == reopened.id


def test_custom_tolerance_widens_exact_band(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-tol")
    context = shift_context(tenant, user)
    service = _service(db_session, cash_sales="0", tolerance="1.00")
    shift = _open(service, context, user, "100")

    closed = service.close_shift(context, str(shift.id), actual_total="99.50")

    assert closed.difference == Decimal("-0.50")
    assert service.variance_of(closed) is Variance.EXACT


def test_negative_tolerance_rejected_by_service(db_session):
    with pytest.raises(ValueError):
        _service(db_session, tolerance="-1")


def test_preview_close_does_not_persist(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-preview")
    context = shift_context(tenant, user)
    service = _service(db_session, cash_sales="350.50")
    shift = _open(service, context, user, "200")

    result = service.preview_close(context, str(shift.id), actual_total="540.00")

    assert result.difference == Decimal("-10.50")
    assert result.variance is Variance.SHORTAGE
    db_session.expire_all()
    assert db_session.get(CashShift, shift.id).status == "open"


def test_injected_clock_sets_timestamps(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-clock")
    context = shift_context(tenant, user)
    opened = datetime(2026, 3, 1, 8, 0, 0)
    service = _service(db_session, clock=lambda: opened)

    shift = _open(service, context, user)

    assert shift.opened_at == opened


def test_get_shift_and_list_history(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-list")
    context = shift_context(tenant, user)
    service = _service(db_session)
    first = _open(service, context, user)
    service.close_shift(context, str(first.id), actual_total="200")
    second = _open(service, context, user)

    assert service.get_shift(context, str(first.id)).status == "closed"

    rows, total = service.list_shifts(context, status="closed")
    assert total == 1
    assert [row.id for row in rows] == [first.id]

    rows, total = service.list_shifts(context)
    assert total == 2
    assert {row.id for row in rows} == {first.id, second.id}


def test_get_missing_shift_not_found(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-missing")

    with pytest.raises(AppError) as excinfo:
        _service(db_session).get_shift(shift_context(tenant, user), str(uuid.uuid4()))

    assert excinfo.value.error.code == ErrorCatalog.SHIFT_NOT_FOUND.code


def test_list_rejects_unknown_status(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-status")

    with pytest.raises(AppError) as excinfo:
        _service(db_session).list_shifts(shift_context(tenant, user), status="pending")

    assert excinfo.value.error.code == ErrorCatalog.VALIDATION_ERROR.code


def test_variance_keeps_tolerance_used_at_close(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-stored-variance")
    context = shift_context(tenant, user)
    lenient = _service(db_session, cash_sales="0", tolerance="1.00")
    shift = _open(lenient, context, user, "100")
    closed = lenient.close_shift(context, str(shift.id), actual_total="99.50")

    assert closed.variance == "exact"
    assert closed.variance_tolerance == Decimal("1.00")

    strict = _service(db_session, tolerance="0")
    assert strict.variance_of(strict.get_shift(context, str(shift.id))) is Variance.EXACT


def test_variance_of_legacy_row_uses_current_tolerance(db_session):
    tenant, user = create_tenant_user(db_session, suffix="svc-legacy-variance")
    shift = CashShift(
        tenant_id=tenant.id,
        workstation_id="main",
        user_id=user.id,
        user_name=user.display_name,
        status="closed",
        starting_cash=Decimal("10"),
        difference=Decimal("-0.50"),
    )

    assert _service(db_session, tolerance="1.00").variance_of(shift) is Variance.EXACT
    assert _service(db_session, tolerance="0.01").variance_of(shift) is Variance.SHORTAGE
