from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import delete, select

from app.comptoir.db.models import IdempotencyRecord


@dataclass(frozen=True)
class IdempotencyScope:
    tenant_id: str
    endpoint: str
    method: str
    idempotency_key: str


class IdempotencyRepository:
    def __init__(self, db):
        self.db = db

    def get(self, scope: IdempotencyScope) -> IdempotencyRecord | None:
        stmt = select(IdempotencyRecord).where(
            IdempotencyRecord.tenant_id == scope.tenant_id,
            IdempotencyRecord.endpoint == scope.endpoint,
            IdempotencyRecord.method == scope.method,
            IdempotencyRecord.idempotency_key == scope.idempotency_key,
        )
        return self.db.execute(stmt).scalars().first()

    def delete(self, record_id) -> None:
        self.db.execute(delete(IdempotencyRecord).where(IdempotencyRecord.id == record_id))
        self.db.commit()

    def save(self, record: IdempotencyRecord) -> IdempotencyRecord:
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record
