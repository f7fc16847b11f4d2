from __future__ import annotations

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.comptoir.core.context import ShiftContext
from app.comptoir.core.deps import get_shift_context, require_active_user
from app.comptoir.core.error_catalog import ErrorCatalog
from app.comptoir.db.models import Sale
from app.comptoir.db.session import get_db
from app.comptoir.schemas.sales import SaleCreateRequest, SaleResponse, SalesTotalsResponse
from app.comptoir.services.audit import AuditEventPayload, AuditService
from app.comptoir.services.idempotency import IDEMPOTENCY_RESULT_HEADER, start_idempotent_request
from app.comptoir.services.sales import SalesAggregator, SalesService


router = APIRouter()


def _sale_response(sale: Sale) -> SaleResponse:
    return SaleResponse(
        id=str(sale.id),
        tenant_id=str(sale.tenant_id),
        workstation_id=sale.workstation_id,
        shift_id=str(sale.shift_id) if sale.shift_id else None,
        invoice_number=sale.invoice_number,
        payment_method=sale.payment_method,
        total_amount=Decimal(str(sale.total_amount)),
        discount_amount=Decimal(str(sale.discount_amount)),
        tax_amount=Decimal(str(sale.tax_amount)),
        paid_amount=Decimal(str(sale.paid_amount)),
        change_amount=Decimal(str(sale.change_amount)),
        status=sale.status,
        notes=sale.notes,
        created_by_user_id=str(sale.created_by_user_id) if sale.created_by_user_id else None,
        created_at=sale.created_at,
    )


@router.post("/pos/sales", response_model=SaleResponse)
def record_sale(
    request: Request,
    payload: SaleCreateRequest,
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
        return JSONResponse(
            status_code=replay.status_code,
            content=replay.response_body,
            headers={IDEMPOTENCY_RESULT_HEADER: ErrorCatalog.IDEMPOTENCY_REPLAY.code},
        )

    sale = SalesService(db).record_sale(
        context,
        payment_method=payload.payment_method,
        total_amount=payload.total_amount,
        paid_amount=payload.paid_amount,
        discount_amount=payload.discount_amount,
        tax_amount=payload.tax_amount,
        notes=payload.notes,
        created_by_user_id=str(current_user.id),
    )
    response = _sale_response(sale)
    if idempotency is not None:
        idempotency.record_success(status_code=200, response_body=response.model_dump(mode="json"))
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=context.tenant_id,
            user_id=str(current_user.id),
            trace_id=context.trace_id,
            actor=current_user.username,
            action="sale.record",
            entity_type="sale",
            entity_id=response.id,
            before=None,
            after={
                "invoice_number": response.invoice_number,
                "payment_method": response.payment_method,
                "total_amount": str(response.total_amount),
                "shift_id": response.shift_id,
            },
            metadata=None,
        )
    )
    return response


@router.get("/pos/sales/summary/today", response_model=SalesTotalsResponse)
def todays_sales_summary(
    business_date: date | None = None,
    context: ShiftContext = Depends(get_shift_context),
    _user=Depends(require_active_user),
    db=Depends(get_db),
):
    aggregator = SalesAggregator(db)
    day = business_date or aggregator.today()
    totals = aggregator.totals_by_payment_method(context, day)
    return SalesTotalsResponse(
        business_date=day,
        timezone=str(aggregator.tz),
        workstation_id=context.workstation_id,
        cash=totals["cash"],
        card=totals["card"],
        credit=totals["credit"],
        total=sum(totals.values(), Decimal("0")),
    )
