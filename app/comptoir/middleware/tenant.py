from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.comptoir.core.config import settings
from app.comptoir.core.context import build_request_context
from app.comptoir.core.security import decode_token


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Expose tenant/user ids on ``request.state`` for request logging.

    Authorization itself is enforced by the route dependencies.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.tenant_id = None
        request.state.user_id = None
        request.state.role = None
        request.state.workstation_id = request.headers.get("X-Workstation-ID") or settings.DEFAULT_WORKSTATION_ID

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.lower().startswith("bearer "):
            token = auth_header.split(" ", 1)[1]
            try:
                payload = decode_token(token)
            except JWTError:
                payload = {}
            request.state.tenant_id = payload.get("tenant_id")
            request.state.user_id = payload.get("sub")
            request.state.role = payload.get("role")

        request.state.context = build_request_context(
            user_id=request.state.user_id,
            tenant_id=request.state.tenant_id,
            workstation_id=request.state.workstation_id,
            role=request.state.role,
            trace_id=getattr(request.state, "trace_id", ""),
        )

        return await call_next(request)
