from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

PaymentMethod = Literal["cash", "card", "credit"]


class SaleCreateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "payment_method": "cash",
                "total_amount": "120.00",
                "paid_amount": "150.00",
            }
        }
    }

    payment_method: PaymentMethod = "cash"
    total_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    paid_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    notes: str | None = Field(default=None, max_length=2000)


class SaleResponse(BaseModel):
    id: str
    tenant_id: str
    workstation_id: str
    shift_id: str | None
    invoice_number: str
    payment_method: str
    total_amount: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    paid_amount: Decimal
    change_amount: Decimal
    status: str
    notes: str | None
    created_by_user_id: str | None
    created_at: datetime


class SalesTotalsResponse(BaseModel):
    business_date: date
    timezone: str
    workstation_id: str
    cash: Decimal
    card: Decimal
    credit: Decimal
    total: Decimal
