from fastapi import APIRouter, Depends, Request

from app.comptoir.core.deps import require_active_user
from app.comptoir.db.session import get_db
from app.comptoir.schemas.auth import LoginRequest, TokenResponse, UserResponse
from app.comptoir.services.audit import AuditEventPayload, AuditService
from app.comptoir.services.auth import AuthService

router = APIRouter()


@router.post("/login", response_model=TokenResponse, summary="Login with username and PIN")
def login(request: Request, payload: LoginRequest, db=Depends(get_db)):
    trace_id = getattr(request.state, "trace_id", "")
    user, token = AuthService(db).login(payload.username, payload.pin)
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=str(user.tenant_id),
            user_id=str(user.id),
            trace_id=trace_id or None,
            actor=user.username,
            action="auth.login",
            entity_type="user",
            entity_id=str(user.id),
            before=None,
            after=None,
            metadata=None,
        )
    )
    return TokenResponse(access_token=token, trace_id=trace_id)


@router.get("/me", response_model=UserResponse)
def me(request: Request, current_user=Depends(require_active_user)):
    return UserResponse(
        id=str(current_user.id),
        tenant_id=str(current_user.tenant_id),
        username=current_user.username,
        display_name=current_user.display_name,
        role=current_user.role,
        is_active=current_user.is_active,
        trace_id=getattr(request.state, "trace_id", ""),
    )
