from fastapi import Depends, Header, Request
from jose import JWTError
from pydantic import ValidationError

from app.comptoir.core.config import settings
from app.comptoir.core.context import ShiftContext
from app.comptoir.core.error_catalog import AppError, ErrorCatalog
from app.comptoir.core.security import TokenData, decode_token, oauth2_scheme
from app.comptoir.db.session import get_db
from app.comptoir.repos.users import UserRepository

WORKSTATION_HEADER = "X-Workstation-ID"


def get_current_token_data(token: str = Depends(oauth2_scheme)) -> TokenData:
    try:
        payload = decode_token(token)
        return TokenData(**payload)
    except (JWTError, ValidationError, TypeError) as exc:
        raise AppError(ErrorCatalog.INVALID_TOKEN) from exc


def get_current_user(token_data: TokenData = Depends(get_current_token_data), db=Depends(get_db)):
    repo = UserRepository(db)
    user = repo.get_by_id_in_tenant(token_data.sub, token_data.tenant_id)
    if user is None:
        raise AppError(ErrorCatalog.INVALID_TOKEN)
    return user


def require_active_user(user=Depends(get_current_user)):
    if not user.is_active:
        raise AppError(ErrorCatalog.USER_INACTIVE)
    return user


def require_role(*roles: str):
    allowed = {role.upper() for role in roles}

    def dependency(user=Depends(require_active_user)):
        if (user.role or "").upper() not in allowed:
            raise AppError(ErrorCatalog.PERMISSION_DENIED)
        return user

    return dependency


def get_workstation_id(x_workstation_id: str | None = Header(None, alias=WORKSTATION_HEADER)) -> str:
    workstation_id = (x_workstation_id or "").strip()
    return workstation_id or settings.DEFAULT_WORKSTATION_ID


def get_shift_context(
    request: Request,
    token_data: TokenData = Depends(get_current_token_data),
    workstation_id: str = Depends(get_workstation_id),
) -> ShiftContext:
    if not token_data.tenant_id:
        raise AppError(ErrorCatalog.TENANT_SCOPE_REQUIRED)
    request.state.workstation_id = workstation_id
    return ShiftContext(
        tenant_id=token_data.tenant_id,
        workstation_id=workstation_id,
        user_id=token_data.sub,
        trace_id=getattr(request.state, "trace_id", None),
    )


__all__ = [
    "get_current_token_data",
    "get_current_user",
    "require_active_user",
    "require_role",
    "get_workstation_id",
    "get_shift_context",
]
