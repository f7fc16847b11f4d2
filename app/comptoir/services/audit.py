import logging
from dataclasses import dataclass
from datetime import datetime

from app.comptoir.db.models import AuditEvent

logger = logging.getLogger(__name__)


@dataclass
class AuditEventPayload:
    tenant_id: str
    user_id: str | None
    trace_id: str | None
    actor: str
    action: str
    entity_type: str
    entity_id: str | None
    before: dict | None
    after: dict | None
    metadata: dict | None
    result: str = "success"


class AuditService:
    """Best-effort audit trail.

    Failures are logged and swallowed so an audit write never fails the
    cash operation it describes.
    """

    def __init__(self, db):
        self.db = db

    def record_event(self, payload: AuditEventPayload) -> None:
        try:
            event = AuditEvent(
                tenant_id=payload.tenant_id,
                user_id=payload.user_id,
                trace_id=payload.trace_id,
                actor=payload.actor,
                action=payload.action,
                entity_type=payload.entity_type,
                entity_id=payload.entity_id,
                before_payload=payload.before,
                after_payload=payload.after,
                event_metadata=payload.metadata,
                result=payload.result,
                created_at=datetime.utcnow(),
            )
            self.db.add(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(
                "Failed to write audit event",
                extra={
                    "action": payload.action,
                    "trace_id": payload.trace_id,
                    "tenant_id": payload.tenant_id,
                    "entity_id": payload.entity_id,
                },
            )
