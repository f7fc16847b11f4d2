from dataclasses import dataclass

from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


def _define(code: str, status_code: int, message: str) -> ErrorDefinition:
    return ErrorDefinition(code=code, message=message, status_code=status_code)


class ErrorCatalog:
    """Every error code the API can put in an error envelope."""

    # authentication and scope
    INVALID_TOKEN = _define("INVALID_TOKEN", status.HTTP_401_UNAUTHORIZED, "Access token is invalid or expired")
    INVALID_CREDENTIALS = _define("INVALID_CREDENTIALS", status.HTTP_401_UNAUTHORIZED, "Unknown username or wrong PIN")
    USER_INACTIVE = _define("USER_INACTIVE", status.HTTP_403_FORBIDDEN, "Cashier account is disabled")
    PERMISSION_DENIED = _define("PERMISSION_DENIED", status.HTTP_403_FORBIDDEN, "Role not allowed for this action")
    TENANT_SCOPE_REQUIRED = _define("TENANT_SCOPE_REQUIRED", status.HTTP_403_FORBIDDEN, "Token carries no tenant")

    # cash drawer state
    NO_OPEN_SHIFT = _define("NO_OPEN_SHIFT", status.HTTP_409_CONFLICT, "No open cash shift")
    SHIFT_ALREADY_OPEN = _define(
        "SHIFT_ALREADY_OPEN",
        status.HTTP_409_CONFLICT,
        "A cash shift is already open for this workstation",
    )
    SHIFT_NOT_FOUND = _define("SHIFT_NOT_FOUND", status.HTTP_404_NOT_FOUND, "Cash shift not found")
    INVOICE_NUMBER_CONFLICT = _define(
        "INVOICE_NUMBER_CONFLICT",
        status.HTTP_409_CONFLICT,
        "Invoice number was taken by a concurrent sale, retry the sale",
    )

    # input
    VALIDATION_ERROR = _define("VALIDATION_ERROR", status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error")

    # storage
    DB_UNAVAILABLE = _define("DB_UNAVAILABLE", status.HTTP_503_SERVICE_UNAVAILABLE, "Database unavailable")
    LOCK_TIMEOUT = _define("LOCK_TIMEOUT", status.HTTP_409_CONFLICT, "Database is busy, retry the request")
    INTERNAL_ERROR = _define("INTERNAL_ERROR", status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    # Idempotency-Key handling
    IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD = _define(
        "IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD",
        status.HTTP_409_CONFLICT,
        "Idempotency-Key was already used with another payload",
    )
    IDEMPOTENCY_REQUEST_IN_PROGRESS = _define(
        "IDEMPOTENCY_REQUEST_IN_PROGRESS",
        status.HTTP_409_CONFLICT,
        "A request with this Idempotency-Key is still running",
    )
    IDEMPOTENCY_REPLAY = _define("IDEMPOTENCY_REPLAY", status.HTTP_200_OK, "Stored response replayed")


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)

    @property
    def status_code(self) -> int:
        return self.error.status_code
