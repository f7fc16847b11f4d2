from dataclasses import dataclass

from fastapi import Request


@dataclass(frozen=True)
class RequestContext:
    user_id: str | None
    tenant_id: str | None
    workstation_id: str | None
    role: str | None
    trace_id: str


@dataclass(frozen=True)
class ShiftContext:
    """Scope every cash shift operation runs in.

    One open shift may exist per ``(tenant_id, workstation_id)``.
    """

    tenant_id: str
    workstation_id: str
    user_id: str | None = None
    trace_id: str | None = None


def build_request_context(
    *,
    user_id: str | None,
    tenant_id: str | None,
    workstation_id: str | None,
    role: str | None,
    trace_id: str,
) -> RequestContext:
    return RequestContext(
        user_id=user_id,
        tenant_id=tenant_id,
        workstation_id=workstation_id,
        role=role,
        trace_id=trace_id,
    )


def get_request_context(request: Request) -> RequestContext:
    context = getattr(request.state, "context", None)
    if isinstance(context, RequestContext):
        return context
    return build_request_context(
        user_id=getattr(request.state, "user_id", None),
        tenant_id=getattr(request.state, "tenant_id", None),
        workstation_id=getattr(request.state, "workstation_id", None),
        role=getattr(request.state, "role", None),
        trace_id=getattr(request.state, "trace_id", ""),
    )
