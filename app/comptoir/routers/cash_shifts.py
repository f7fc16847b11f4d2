from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from app.comptoir.core.context import ShiftContext
from app.comptoir.core.deps import get_shift_context, require_active_user, require_role
from app.comptoir.core.error_catalog import ErrorCatalog
from app.comptoir.db.models import CashShift
from app.comptoir.db.session import get_db
from app.comptoir.schemas.cash_shifts import (
    CashShiftCloseRequest,
    CashShiftCurrentResponse,
    CashShiftListResponse,
    CashShiftOpenRequest,
    CashShiftReconciliationResponse,
    CashShiftSummary,
)
from app.comptoir.services.audit import AuditEventPayload, AuditService
from app.comptoir.services.cash_shifts import CashShiftService
from app.comptoir.services.idempotency import IDEMPOTENCY_RESULT_HEADER, start_idempotent_request


router = APIRouter()


def _optional_str(value) -> str | None:
    return str(value) if value is not None else None


def _optional_decimal(value) -> Decimal | None:
    return Decimal(str(value)) if value is not None else None


def _shift_summary(shift: CashShift, service: CashShiftService) -> CashShiftSummary:
    variance = service.variance_of(shift)
    return CashShiftSummary(
        id=str(shift.id),
        tenant_id=str(shift.tenant_id),
        workstation_id=shift.workstation_id,
        user_id=str(shift.user_id),
        user_name=shift.user_name,
        status=shift.status,
        starting_cash=Decimal(str(shift.starting_cash)),
        total_cash_sales=Decimal(str(shift.total_cash_sales)),
        total_card_sales=Decimal(str(shift.total_card_sales)),
        total_credit_sales=Decimal(str(shift.total_credit_sales)),
        total_sales=Decimal(str(shift.total_sales)),
        transactions_count=shift.transactions_count,
        opened_at=shift.opened_at,
        closed_at=shift.closed_at,
        closed_by_user_id=_optional_str(shift.closed_by_user_id),
        actual_total=_optional_decimal(shift.actual_total),
        expected_total=_optional_decimal(shift.expected_total),
        difference=_optional_decimal(shift.difference),
        variance=variance.value if variance else None,
        variance_tolerance=_optional_decimal(shift.variance_tolerance),
        notes=shift.notes,
    )


def _replay_response(replay) -> JSONResponse:
    return JSONResponse(
        status_code=replay.status_code,
        content=replay.response_body,
        headers={IDEMPOTENCY_RESULT_HEADER: ErrorCatalog.IDEMPOTENCY_REPLAY.code},
    )


@router.get("/pos/cash-shifts/current", response_model=CashShiftCurrentResponse)
def get_current_shift(
    context: ShiftContext = Depends(get_shift_context),
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    service = CashShiftService(db)
    shift = service.get_open_shift(context)
    return CashShiftCurrentResponse(shift=_shift_summary(shift, service) if shift else None)


@router.post("/pos/cash-shifts/open", response_model=CashShiftSummary)
def open_shift(
    request: Request,
    payload: CashShiftOpenRequest,
    context: ShiftContext = Depends(get_shift_context),
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    idempotency, replay = start_idempotent_request(
        request,
        db,
        tenant_id=context.tenant_id,
        payload={"workstation_id": context.workstation_id, **payload.model_dump(mode="json")},
    )
    if replay:
        return _replay_response(replay)

    service = CashShiftService(db)
    shift = service.open_shift(
        context,
        user_id=str(current_user.id),
        user_name=current_user.display_name,
        starting_cash=payload.starting_cash,
    )
    response = _shift_summary(shift, service)
    if idempotency is not None:
        idempotency.record_success(status_code=200, response_body=response.model_dump(mode="json"))
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=str(current_user.id),
            trace_id=context.trace_id,
            actor=current_user.username,
            action="cash_shift.open",
            entity_type="cash_shift",
            entity_id=response.id,
            before=None,
            after={
                "status": response.status,
                "starting_cash": str(response.starting_cash),
                "workstation_id": response.workstation_id,
            },
            metadata=None,
        )
    )
    return response


@router.get("/pos/cash-shifts/{shift_id}/reconciliation", response_model=CashShiftReconciliationResponse)
def preview_shift_reconciliation(
    shift_id: str,
    actual_total: Decimal = Query(ge=0, max_digits=12, decimal_places=2),
    context: ShiftContext = Depends(get_shift_context),
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    result = CashShiftService(db).preview_close(context, shift_id, actual_total=actual_total)
    return CashShiftReconciliationResponse(
        shift_id=shift_id,
        starting_cash=result.starting_cash,
        cash_sales=result.cash_sales,
        expected_total=result.expected_total,
        actual_total=result.actual_total,
        difference=result.difference,
        variance=result.variance.value,
        tolerance=result.tolerance,
    )


@router.post("/pos/cash-shifts/{shift_id}/close", response_model=CashShiftSummary)
def close_shift(
    request: Request,
    shift_id: str,
    payload: CashShiftCloseRequest,
    context: ShiftContext = Depends(get_shift_context),
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    idempotency, replay = start_idempotent_request(
        request,
        db,
        tenant_id=context.tenant_id,
        payload=payload.model_dump(mode="json"),
    )
    if replay:
        return _replay_response(replay)

    service = CashShiftService(db)
    shift = service.close_shift(context, shift_id, actual_total=payload.actual_total, notes=payload.notes)
    response = _shift_summary(shift, service)
    if idempotency is not None:
        idempotency.record_success(status_code=200, response_body=response.model_dump(mode="json"))
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=str(current_user.id),
            trace_id=context.trace_id,
            actor=current_user.username,
            action="cash_shift.close",
            entity_type="cash_shift",
            entity_id=response.id,
            before={"status": "open"},
            after={
                "status": response.status,
                "expected_total": str(response.expected_total),
                "actual_total": str(response.actual_total),
                "difference": str(response.difference),
                "variance": response.variance,
            },
            metadata={"notes": payload.notes},
        )
    )
    return response


@router.get("/pos/cash-shifts/{shift_id}", response_model=CashShiftSummary)
def get_shift(
    shift_id: str,
    context: ShiftContext = Depends(get_shift_context),
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    service = CashShiftService(db)
    return _shift_summary(service.get_shift(context, shift_id), service)


@router.get("/pos/cash-shifts", response_model=CashShiftListResponse)
def list_shifts(
    status: str | None = None,
    workstation_id: str | None = None,
    user_id: str | None = None,
    limit: int = 50,
    offset: int = 0,
    context: ShiftContext = Depends(get_shift_context),
    _user=Depends(require_role("ADMIN", "MANAGER")),
    db=Depends(get_db),
):
    service = CashShiftService(db)
    rows, total = service.list_shifts(
        context,
        status=status,
        workstation_id=workstation_id,
        user_id=user_id,
        limit=limit,
        offset=offset,
    )
    return CashShiftListResponse(rows=[_shift_summary(row, service) for row in rows], total=total)
