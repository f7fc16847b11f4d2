import json
import logging
from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.comptoir.core.error_catalog import AppError, ErrorCatalog, ErrorDefinition
from app.comptoir.core.metrics import metrics

logger = logging.getLogger("comptoir.errors")

_LOCK_MARKERS = ("database is locked", "lock timeout", "deadlock detected", "could not obtain lock")

# framework errors raised before a route runs (missing token, unknown path)
_STATUS_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _plain(value):
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


def error_body(request: Request, code: str, message: str, details=None) -> dict:
    return {
        "code": code,
        "message": message,
        "details": _plain(details),
        "trace_id": getattr(request.state, "trace_id", ""),
    }


def error_response(
    request: Request,
    error: ErrorDefinition,
    details=None,
    *,
    exc: Exception | None = None,
) -> JSONResponse:
    """Render ``error`` as the JSON envelope and tag the request log with it."""
    request.state.error_code = error.code
    if exc is not None:
        request.state.error_class = exc.__class__.__name__
    body = error_body(request, error.code, error.message, details)
    return JSONResponse(status_code=error.status_code, content=body)


def _settle_idempotency(request: Request, response: JSONResponse, *, retryable: bool) -> None:
    idempotency = getattr(request.state, "idempotency", None)
    if idempotency is None:
        return
    if retryable:
        idempotency.release()
    else:
        idempotency.record_failure(status_code=response.status_code, response_body=json.loads(response.body))


def is_lock_timeout(exc: Exception) -> bool:
    if not isinstance(exc, OperationalError):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in _LOCK_MARKERS)


def _field_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header")]
        errors.append(
            {
                "field": ".".join(location) or None,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "value_error"),
            }
        )
    return errors


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        response = error_response(request, exc.error, exc.details, exc=exc)
        # business outcomes are final, a replay returns the same error
        _settle_idempotency(request, response, retryable=False)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = _STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
        request.state.error_code = code
        body = error_body(request, code, str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(request, ErrorCatalog.VALIDATION_ERROR, {"errors": _field_errors(exc)}, exc=exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        if is_lock_timeout(exc):
            metrics.increment_lock_wait_timeout()
            error = ErrorCatalog.LOCK_TIMEOUT
        else:
            logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
            error = ErrorCatalog.INTERNAL_ERROR
        response = error_response(request, error, {"type": exc.__class__.__name__}, exc=exc)
        # nothing was stored, so the same Idempotency-Key may run again
        _settle_idempotency(request, response, retryable=True)
        return response
