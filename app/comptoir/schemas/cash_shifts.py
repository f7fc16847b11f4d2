from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class CashShiftOpenRequest(BaseModel):
    model_config = {"json_schema_extra": {"example": {"starting_cash": "200.00"}}}

    starting_cash: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class CashShiftCloseRequest(BaseModel):
    model_config = {"json_schema_extra": {"example": {"actual_total": "550.50", "notes": "Counted twice"}}}

    actual_total: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    notes: str | None = Field(default=None, max_length=2000)


class CashShiftSummary(BaseModel):
    id: str
    tenant_id: str
    workstation_id: str
    user_id: str
    user_name: str
    status: Literal["open", "closed"]
    starting_cash: Decimal
    total_cash_sales: Decimal
    total_card_sales: Decimal
    total_credit_sales: Decimal
    total_sales: Decimal
    transactions_count: int
    opened_at: datetime
    closed_at: datetime | None
    closed_by_user_id: str | None
    actual_total: Decimal | None
    expected_total: Decimal | None
    difference: Decimal | None
    variance: Literal["surplus", "shortage", "exact"] | None
    variance_tolerance: Decimal | None = None
    notes: str | None


class CashShiftCurrentResponse(BaseModel):
    shift: CashShiftSummary | None


class CashShiftListResponse(BaseModel):
    rows: list[CashShiftSummary]
    total: int


class CashShiftReconciliationResponse(BaseModel):
    shift_id: str
    starting_cash: Decimal
    cash_sales: Decimal
    expected_total: Decimal
    actual_total: Decimal
    difference: Decimal
    variance: Literal["surplus", "shortage", "exact"]
    tolerance: Decimal
