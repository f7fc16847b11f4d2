from fastapi import APIRouter

from app.comptoir.core.config import settings
from app.comptoir.routers.auth import router as auth_router
from app.comptoir.routers.cash_shifts import router as cash_shifts_router
from app.comptoir.routers.health import router as health_router
from app.comptoir.routers.metrics import router as metrics_router
from app.comptoir.routers.sales import router as sales_router
from app.comptoir.schemas.errors import ApiErrorResponse, ApiValidationErrorResponse

ERROR_RESPONSES = {
    401: {"model": ApiErrorResponse},
    403: {"model": ApiErrorResponse},
    409: {"model": ApiErrorResponse},
    422: {"model": ApiValidationErrorResponse},
}

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, prefix="/auth", tags=["auth"], responses=ERROR_RESPONSES)
api_router.include_router(cash_shifts_router, tags=["cash-shifts"], responses=ERROR_RESPONSES)
api_router.include_router(sales_router, tags=["sales"], responses=ERROR_RESPONSES)
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
