from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.exc import IntegrityError

from app.comptoir.core.config import settings
from app.comptoir.core.context import ShiftContext
from app.comptoir.core.error_catalog import AppError, ErrorCatalog
from app.comptoir.core.logging import log_json
from app.comptoir.core.metrics import metrics
from app.comptoir.db.models import (
    PAYMENT_METHOD_CARD,
    PAYMENT_METHOD_CASH,
    PAYMENT_METHOD_CREDIT,
    PAYMENT_METHODS,
    SALE_STATUS_COMPLETED,
    CashShift,
    Sale,
)
from app.comptoir.repos.cash_shifts import CashShiftRepository
from app.comptoir.repos.sales import SaleRepository
from app.comptoir.services.reconciliation import ZERO, ensure_non_negative_amount

logger = logging.getLogger("comptoir.sales")

_SHIFT_TOTAL_COLUMNS = {
    PAYMENT_METHOD_CASH: "total_cash_sales",
    PAYMENT_METHOD_CARD: "total_card_sales",
    PAYMENT_METHOD_CREDIT: "total_credit_sales",
}


def resolve_timezone(timezone_name: str | None):
    if not timezone_name or timezone_name in ("UTC", "Z", "Etc/UTC"):
        return timezone.utc
    try:
        return ZoneInfo(timezone_name)
    except ZoneInfoNotFoundError as exc:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "invalid timezone"}) from exc


class SalesAggregator:
    """Sums recorded sales per payment method over one business day."""

    def __init__(self, db, *, timezone_name: str | None = None, clock=None):
        self.repo = SaleRepository(db)
        self.tz = resolve_timezone(timezone_name or settings.BUSINESS_TIMEZONE)
        self._clock = clock or datetime.utcnow

    def today(self) -> date:
        now_utc = self._clock().replace(tzinfo=timezone.utc)
        return now_utc.astimezone(self.tz).date()

    def day_bounds(self, day: date) -> tuple[datetime, datetime]:
        # sales.created_at is stored as naive UTC
        start_local = datetime.combine(day, time.min, tzinfo=self.tz)
        end_local = datetime.combine(day + timedelta(days=1), time.min, tzinfo=self.tz)
        start_utc = start_local.astimezone(timezone.utc).replace(tzinfo=None)
        end_utc = end_local.astimezone(timezone.utc).replace(tzinfo=None)
        return start_utc, end_utc

    def totals_by_payment_method(self, context: ShiftContext, day: date | None = None) -> dict[str, Decimal]:
        start, end = self.day_bounds(day or self.today())
        sums = self.repo.sum_by_payment_method(
            tenant_id=context.tenant_id,
            workstation_id=context.workstation_id,
            start=start,
            end=end,
        )
        totals = {method: ZERO for method in PAYMENT_METHODS}
        for method, amount in sums.items():
            totals[method] = totals.get(method, ZERO) + amount
        return totals

    def todays_cash_sales(self, context: ShiftContext) -> Decimal:
        return self.totals_by_payment_method(context)[PAYMENT_METHOD_CASH]


class SalesService:
    def __init__(self, db, *, clock=None):
        self.db = db
        self.repo = SaleRepository(db)
        self.shifts = CashShiftRepository(db)
        self._clock = clock or datetime.utcnow

    def record_sale(
        self,
        context: ShiftContext,
        *,
        payment_method: str,
        total_amount,
        paid_amount=None,
        discount_amount=None,
        tax_amount=None,
        notes: str | None = None,
        created_by_user_id: str | None = None,
    ) -> Sale:
        method = (payment_method or "").strip().lower()
        if method not in PAYMENT_METHODS:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"message": "unsupported payment_method", "allowed": list(PAYMENT_METHODS)},
            )
        total = ensure_non_negative_amount(total_amount, "total_amount")
        paid = ensure_non_negative_amount(total if paid_amount is None else paid_amount, "paid_amount")
        discount = ensure_non_negative_amount(discount_amount or ZERO, "discount_amount")
        tax = ensure_non_negative_amount(tax_amount or ZERO, "tax_amount")

        if method == PAYMENT_METHOD_CASH:
            if paid < total:
                raise AppError(
                    ErrorCatalog.VALIDATION_ERROR,
                    details={"message": "paid_amount must cover total_amount for cash sales"},
                )
            change = paid - total
        else:
            change = ZERO

        shift = self.shifts.get_open(
            tenant_id=context.tenant_id,
            workstation_id=context.workstation_id,
            for_update=True,
        )
        now = self._clock()
        invoice_number = self._next_invoice_number(context.tenant_id)
        sale = Sale(
            tenant_id=context.tenant_id,
            workstation_id=context.workstation_id,
            shift_id=shift.id if shift else None,
            invoice_number=invoice_number,
            payment_method=method,
            total_amount=total,
            discount_amount=discount,
            tax_amount=tax,
            paid_amount=paid,
            change_amount=change,
            status=SALE_STATUS_COMPLETED,
            notes=notes,
            created_by_user_id=created_by_user_id or context.user_id,
            created_at=now,
        )
        try:
            self.repo.create(sale)
            if shift is not None:
                self._accumulate(shift, method, total)
                self.shifts.update(shift)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            # another terminal took the same invoice number first
            raise AppError(
                ErrorCatalog.INVOICE_NUMBER_CONFLICT,
                details={"invoice_number": invoice_number},
            ) from None
        self.db.refresh(sale)

        metrics.increment_sale_recorded(method)
        log_json(
            logger,
            {
                "event": "sale.recorded",
                "trace_id": context.trace_id,
                "tenant_id": context.tenant_id,
                "workstation_id": context.workstation_id,
                "sale_id": str(sale.id),
                "shift_id": str(sale.shift_id) if sale.shift_id else None,
                "payment_method": method,
                "total_amount": total,
            },
        )
        return sale

    @staticmethod
    def _accumulate(shift: CashShift, method: str, amount: Decimal) -> None:
        column = _SHIFT_TOTAL_COLUMNS[method]
        setattr(shift, column, Decimal(str(getattr(shift, column) or 0)) + amount)
        shift.total_sales = Decimal(str(shift.total_sales or 0)) + amount
        shift.transactions_count = (shift.transactions_count or 0) + 1

    def _next_invoice_number(self, tenant_id: str) -> str:
        return f"INV-{self.repo.count_for_tenant(tenant_id) + 1:06d}"
