from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select

from app.comptoir.db.models import SALE_STATUS_COMPLETED, Sale


class SaleRepository:
    def __init__(self, db):
        self.db = db

    def create(self, sale: Sale) -> Sale:
        self.db.add(sale)
        self.db.flush()
        return sale

    def count_for_tenant(self, tenant_id: str) -> int:
        return self.db.execute(select(func.count()).select_from(Sale).where(Sale.tenant_id == tenant_id)).scalar_one()

    def sum_by_payment_method(
        self,
        *,
        tenant_id: str,
        workstation_id: str | None,
        start: datetime,
        end: datetime,
    ) -> dict[str, Decimal]:
        query = (
            select(Sale.payment_method, func.coalesce(func.sum(Sale.total_amount), 0))
            .where(
                Sale.tenant_id == tenant_id,
                Sale.status == SALE_STATUS_COMPLETED,
                Sale.created_at >= start,
                Sale.created_at < end,
            )
            .group_by(Sale.payment_method)
        )
        if workstation_id:
            query = query.where(Sale.workstation_id == workstation_id)
        return {method: Decimal(str(total)) for method, total in self.db.execute(query).all()}
