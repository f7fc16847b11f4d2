from fastapi import FastAPI

from app.comptoir.api import api_router
from app.comptoir.core.config import settings
from app.comptoir.core.errors import setup_exception_handlers
from app.comptoir.core.logging import configure_logging
from app.comptoir.middleware.observability import ObservabilityMiddleware
from app.comptoir.middleware.tenant import TenantContextMiddleware
from app.comptoir.middleware.trace import TraceIdMiddleware


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.APP_NAME)
    app.add_middleware(TenantContextMiddleware)
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("app.main:app", host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    run()
