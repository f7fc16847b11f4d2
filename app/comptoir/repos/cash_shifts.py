from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select

from app.comptoir.db.models import SHIFT_STATUS_OPEN, CashShift


@dataclass(frozen=True)
class CashShiftQueryFilters:
    tenant_id: str
    workstation_id: str | None = None
    user_id: str | None = None
    status: str | None = None


class CashShiftRepository:
    def __init__(self, db):
        self.db = db

    def create(self, shift: CashShift) -> CashShift:
        self.db.add(shift)
        self.db.flush()
        return shift

    def update(self, shift: CashShift) -> CashShift:
        self.db.add(shift)
        self.db.flush()
        return shift

    def get_by_id(self, shift_id: str, *, tenant_id: str, for_update: bool = False) -> CashShift | None:
        query = select(CashShift).where(CashShift.id == shift_id, CashShift.tenant_id == tenant_id)
        if for_update:
            query = query.with_for_update()
        return self.db.execute(query).scalars().first()

    def get_open(self, *, tenant_id: str, workstation_id: str, for_update: bool = False) -> CashShift | None:
        query = select(CashShift).where(
            CashShift.tenant_id == tenant_id,
            CashShift.workstation_id == workstation_id,
            CashShift.status == SHIFT_STATUS_OPEN,
        )
        if for_update:
            query = query.with_for_update()
        return self.db.execute(query).scalars().first()

    def list_shifts(
        self,
        filters: CashShiftQueryFilters,
        *,
        limit: int,
        offset: int,
    ) -> tuple[list[CashShift], int]:
        query = select(CashShift).where(CashShift.tenant_id == filters.tenant_id)
        count_query = select(func.count()).select_from(CashShift).where(CashShift.tenant_id == filters.tenant_id)
        if filters.workstation_id:
            query = query.where(CashShift.workstation_id == filters.workstation_id)
            count_query = count_query.where(CashShift.workstation_id == filters.workstation_id)
        if filters.user_id:
            query = query.where(CashShift.user_id == filters.user_id)
            count_query = count_query.where(CashShift.user_id == filters.user_id)
        if filters.status:
            query = query.where(CashShift.status == filters.status)
            count_query = count_query.where(CashShift.status == filters.status)

        total = self.db.execute(count_query).scalar_one()
        rows = (
            self.db.execute(query.order_by(CashShift.opened_at.desc()).limit(limit).offset(offset))
            .scalars()
            .all()
        )
        return rows, total
