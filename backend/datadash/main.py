# datadash/main.py
from __future__ import annotations

import structlog
from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware

# Import router objects explicitly to avoid module name collisions
from datadash.routers.health import router as health_router
from datadash.routers.auth import router as auth_router
from datadash.routers.export import router as export_router
from datadash.routers.imports import router as import_router
from datadash.routers.data import router as data_router
from datadash.db.session import database_configured, init_db
from datadash.core.security import get_current_user
from datadash.errors import AppError
from datadash.observability.logging import configure_logging
from datadash.observability.middleware import (
    app_error_handler,
    register_request_middleware,
    request_validation_handler,
    unhandled_exception_handler,
)
from datadash.observability.metrics import router as observability_router
from datadash.config import get_settings

configure_logging()
logger = structlog.get_logger(__name__)

APP_VERSION = "1.0.0"


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Datadash", version=APP_VERSION)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=86400,
    )

    if settings.TRUSTED_HOSTS:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.TRUSTED_HOSTS)

    if settings.FORCE_HTTPS:
        app.add_middleware(HTTPSRedirectMiddleware)

    register_request_middleware(app)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Fail fast on a bad DATABASE_URL; without one the app serves sample data read-only.
    @app.on_event("startup")
    def _ensure_tables() -> None:
        if not database_configured():
            logger.warning("startup.storage_not_configured", fallback="sample")
            return
        init_db()
        logger.info("startup.storage_ready")

    # Public routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(observability_router)

    # Private routers share the same auth dependency
    require_auth = [Depends(get_current_user)]

    # export/import before data so their fixed paths are matched first
    app.include_router(export_router, dependencies=require_auth)
    app.include_router(import_router, dependencies=require_auth)
    app.include_router(data_router, dependencies=require_auth)

    return app


app = create_app()
