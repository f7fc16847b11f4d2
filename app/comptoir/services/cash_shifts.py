from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from app.comptoir.core.config import settings
from app.comptoir.core.context import ShiftContext
from app.comptoir.core.error_catalog import AppError, ErrorCatalog
from app.comptoir.core.logging import log_json
from app.comptoir.core.metrics import metrics
from app.comptoir.db.models import SHIFT_STATUS_CLOSED, SHIFT_STATUS_OPEN, CashShift
from app.comptoir.repos.cash_shifts import CashShiftQueryFilters, CashShiftRepository
from app.comptoir.services.reconciliation import (
    ZERO,
    Reconciliation,
    Variance,
    classify_variance,
    ensure_non_negative_amount,
    reconcile,
    to_decimal,
)
from app.comptoir.services.sales import SalesAggregator

logger = logging.getLogger("comptoir.cash_shifts")


def _parse_uuid(value) -> str | None:
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        return None


class CashShiftService:
    """Opens, reconciles and closes cash drawer shifts.

    A shift is created ``open`` and closed exactly once; ``closed`` is
    terminal. At most one shift is open per tenant and workstation, which
    the ``uq_cash_shifts_open_workstation`` partial index also enforces.
    """

    def __init__(self, db, *, aggregator: SalesAggregator | None = None, tolerance=None, clock=None):
        self.db = db
        self.repo = CashShiftRepository(db)
        self.aggregator = aggregator or SalesAggregator(db)
        self.tolerance = to_decimal(settings.CASH_VARIANCE_TOLERANCE if tolerance is None else tolerance)
        if self.tolerance < 0:
            raise ValueError("tolerance must be non-negative")
        self._clock = clock or datetime.utcnow

    def get_open_shift(self, context: ShiftContext) -> CashShift | None:
        return self.repo.get_open(tenant_id=context.tenant_id, workstation_id=context.workstation_id)

    def get_shift(self, context: ShiftContext, shift_id) -> CashShift:
        normalized = _parse_uuid(shift_id)
        shift = self.repo.get_by_id(normalized, tenant_id=context.tenant_id) if normalized else None
        if shift is None:
            raise AppError(ErrorCatalog.SHIFT_NOT_FOUND, details={"shift_id": str(shift_id)})
        return shift

    def list_shifts(
        self,
        context: ShiftContext,
        *,
        status: str | None = None,
        workstation_id: str | None = None,
        user_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[CashShift], int]:
        if status and status not in (SHIFT_STATUS_OPEN, SHIFT_STATUS_CLOSED):
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "status must be open or closed"})
        if user_id and _parse_uuid(user_id) is None:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "user_id must be a UUID"})
        limit = max(1, min(limit, settings.SHIFT_LIST_MAX_PAGE_SIZE))
        offset = max(0, offset)
        filters = CashShiftQueryFilters(
            tenant_id=context.tenant_id,
            workstation_id=workstation_id,
            user_id=user_id,
            status=status,
        )
        return self.repo.list_shifts(filters, limit=limit, offset=offset)

    def open_shift(self, context: ShiftContext, *, user_id: str, user_name: str, starting_cash) -> CashShift:
        amount = ensure_non_negative_amount(starting_cash, "starting_cash")
        existing = self.repo.get_open(
            tenant_id=context.tenant_id,
            workstation_id=context.workstation_id,
            for_update=True,
        )
        if existing is not None:
            raise AppError(ErrorCatalog.SHIFT_ALREADY_OPEN, details={"shift_id": str(existing.id)})

        shift = CashShift(
            tenant_id=context.tenant_id,
            workstation_id=context.workstation_id,
            user_id=user_id,
            user_name=user_name,
            status=SHIFT_STATUS_OPEN,
            starting_cash=amount,
            total_cash_sales=ZERO,
            total_card_sales=ZERO,
            total_credit_sales=ZERO,
            total_sales=ZERO,
            transactions_count=0,
            opened_at=self._clock(),
        )
        try:
            self.repo.create(shift)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            # another terminal won the race for this workstation
            winner = self.repo.get_open(tenant_id=context.tenant_id, workstation_id=context.workstation_id)
            if winner is None:
                raise
            raise AppError(ErrorCatalog.SHIFT_ALREADY_OPEN, details={"shift_id": str(winner.id)}) from None
        self.db.refresh(shift)

        metrics.increment_shift_opened()
        log_json(
            logger,
            {
                "event": "cash_shift.opened",
                "trace_id": context.trace_id,
                "tenant_id": context.tenant_id,
                "workstation_id": context.workstation_id,
                "shift_id": str(shift.id),
                "user_id": str(user_id),
                "starting_cash": amount,
            },
        )
        return shift

    def preview_close(self, context: ShiftContext, shift_id, *, actual_total) -> Reconciliation:
        amount = ensure_non_negative_amount(actual_total, "actual_total")
        shift = self._require_open(context, shift_id, for_update=False)
        return self._reconcile(context, shift, amount)

    def close_shift(
        self,
        context: ShiftContext,
        shift_id,
        *,
        actual_total,
        notes: str | None = None,
    ) -> CashShift:
        amount = ensure_non_negative_amount(actual_total, "actual_total")
        shift = self._require_open(context, shift_id, for_update=True)
        result = self._reconcile(context, shift, amount)

        shift.status = SHIFT_STATUS_CLOSED
        shift.closed_at = self._clock()
        shift.closed_by_user_id = context.user_id
        shift.actual_total = result.actual_total
        shift.expected_total = result.expected_total
        shift.difference = result.difference
        shift.variance = result.variance.value
        shift.variance_tolerance = result.tolerance
        shift.notes = notes
        self.repo.update(shift)
        self.db.commit()
        self.db.refresh(shift)

        metrics.increment_shift_closed(result.variance.value)
        log_json(
            logger,
            {
                "event": "cash_shift.closed",
                "trace_id": context.trace_id,
                "tenant_id": context.tenant_id,
                "workstation_id": shift.workstation_id,
                "shift_id": str(shift.id),
                "expected_total": result.expected_total,
                "actual_total": result.actual_total,
                "difference": result.difference,
                "variance": result.variance.value,
            },
        )
        return shift

    def variance_of(self, shift: CashShift) -> Variance | None:
        """Classification recorded at close, with the tolerance in force then."""
        if shift.variance:
            return Variance(shift.variance)
        if shift.difference is None:
            return None
        # rows closed before the classification was stored
        tolerance = self.tolerance if shift.variance_tolerance is None else shift.variance_tolerance
        return classify_variance(shift.difference, tolerance)

    def _require_open(self, context: ShiftContext, shift_id, *, for_update: bool) -> CashShift:
        normalized = _parse_uuid(shift_id)
        shift = None
        if normalized:
            shift = self.repo.get_by_id(normalized, tenant_id=context.tenant_id, for_update=for_update)
        if shift is None or shift.status != SHIFT_STATUS_OPEN:
            raise AppError(ErrorCatalog.NO_OPEN_SHIFT, details={"shift_id": str(shift_id)})
        return shift

    def _reconcile(self, context: ShiftContext, shift: CashShift, actual_total: Decimal) -> Reconciliation:
        # sales are aggregated for the workstation the shift was opened on
        sales_context = ShiftContext(
            tenant_id=context.tenant_id,
            workstation_id=shift.workstation_id,
            user_id=context.user_id,
            trace_id=context.trace_id,
        )
        cash_sales = self.aggregator.todays_cash_sales(sales_context)
        return reconcile(
            starting_cash=shift.starting_cash,
            cash_sales=cash_sales,
            actual_total=actual_total,
            tolerance=self.tolerance,
        )
