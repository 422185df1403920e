from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hostel_ledger.api.v1.router import router as api_v1_router
from hostel_ledger.config.database import init_db
from hostel_ledger.config.logging import setup_logging
from hostel_ledger.config.settings import settings
from hostel_ledger.core.exceptions import BaseAppException
from hostel_ledger.core.logging import get_logger

logger = get_logger(__name__)


def create_app(create_tables: bool = True) -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Registers CORS and the domain exception handler.
    - Includes the versioned API router under /api/v1.
    """
    setup_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BaseAppException)
    async def handle_app_exception(request: Request, exc: BaseAppException) -> JSONResponse:
        logger.warning(
            f"{request.method} {request.url.path} failed: {exc.message}",
            extra={"error_code": exc.error_code.value},
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    # For production, manage the schema with migrations
    @app.on_event("startup")
    async def on_startup() -> None:
        if create_tables and not settings.is_production():
            init_db()
        logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} started")

    return app


app = create_app()
