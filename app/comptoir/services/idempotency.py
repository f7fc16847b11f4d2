import hashlib
import json
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from app.comptoir.core.error_catalog import AppError, ErrorCatalog
from app.comptoir.db.models import IdempotencyRecord
from app.comptoir.repos.idempotency import IdempotencyRepository, IdempotencyScope


IDEMPOTENCY_HEADER = "Idempotency-Key"
IDEMPOTENCY_RESULT_HEADER = "X-Idempotency-Result"


@dataclass
class IdempotencyReplay:
    status_code: int
    response_body: dict


class IdempotencyContext:
    def __init__(self, record: IdempotencyRecord, repo: IdempotencyRepository):
        self._record = record
        self._record_id = record.id
        self._repo = repo

    def record_success(self, *, status_code: int, response_body: dict) -> None:
        self._finish("succeeded", status_code, response_body)

    def record_failure(self, *, status_code: int, response_body: dict) -> None:
        # drop whatever the failed request left pending before persisting the outcome
        self._repo.db.rollback()
        self._finish("failed", status_code, response_body)

    def release(self) -> None:
        """Forget the key after an unexpected error so a retry runs the action again."""
        self._repo.db.rollback()
        self._repo.delete(self._record_id)

    def _finish(self, state: str, status_code: int, response_body: dict) -> None:
        self._record.status_code = status_code
        self._record.response_body = json.dumps(response_body, default=str)
        self._record.state = state
        self._record.updated_at = datetime.utcnow()
        self._repo.save(self._record)


class IdempotencyService:
    def __init__(self, db):
        self.repo = IdempotencyRepository(db)

    @staticmethod
    def fingerprint(payload: object) -> str:
        payload_bytes = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
        return hashlib.sha256(payload_bytes).hexdigest()

    def start(
        self,
        *,
        tenant_id: str,
        endpoint: str,
        method: str,
        idempotency_key: str,
        request_hash: str,
    ) -> tuple[IdempotencyContext | None, IdempotencyReplay | None]:
        scope = IdempotencyScope(
            tenant_id=tenant_id,
            endpoint=endpoint,
            method=method,
            idempotency_key=idempotency_key,
        )
        existing = self.repo.get(scope)
        if existing:
            return self._handle_existing(existing, request_hash)

        record = IdempotencyRecord(
            tenant_id=tenant_id,
            endpoint=endpoint,
            method=method,
            idempotency_key=idempotency_key,
            request_hash=request_hash,
            state="in_progress",
            status_code=None,
            response_body=None,
        )
        try:
            record = self.repo.save(record)
        except IntegrityError:
            self.repo.db.rollback()
            return self._handle_existing(self.repo.get(scope), request_hash)

        return IdempotencyContext(record, self.repo), None

    def _handle_existing(
        self, existing: IdempotencyRecord | None, request_hash: str
    ) -> tuple[IdempotencyContext | None, IdempotencyReplay | None]:
        if existing is None:
            raise AppError(ErrorCatalog.IDEMPOTENCY_REQUEST_IN_PROGRESS)
        if existing.request_hash != request_hash:
            raise AppError(ErrorCatalog.IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD)
        if existing.state == "in_progress" or existing.response_body is None or existing.status_code is None:
            raise AppError(ErrorCatalog.IDEMPOTENCY_REQUEST_IN_PROGRESS)
        return None, IdempotencyReplay(status_code=existing.status_code, response_body=json.loads(existing.response_body))


def extract_idempotency_key(headers) -> str | None:
    key = (headers.get(IDEMPOTENCY_HEADER) or "").strip()
    return key or None


def start_idempotent_request(request, db, *, tenant_id: str, payload: dict):
    """Begin an optional idempotent request.

    Returns ``(None, None)`` when no key was sent, ``(None, replay)`` when the
    key was already used with the same payload, ``(context, None)`` otherwise.
    The context is also stored on ``request.state`` so error handlers can
    record failures against it.
    """
    idempotency_key = extract_idempotency_key(request.headers)
    if idempotency_key is None:
        return None, None
    context, replay = IdempotencyService(db).start(
        tenant_id=tenant_id,
        endpoint=str(request.url.path),
        method=request.method,
        idempotency_key=idempotency_key,
        request_hash=IdempotencyService.fingerprint(payload),
    )
    if context is not None:
        request.state.idempotency = context
    return context, replay
