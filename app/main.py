from pathlib import Path
from contextlib import asynccontextmanager

from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.api.routes import (
    health_router,
    ingest_router,
    records_router,
    reports_router,
    sources_router,
    stats_router,
)
from app.core.config import settings
from app.core.errors import AppError, StoreError
from app.core.logging import get_logger
from app.core.responses import json_response
from app.core.security import RateLimiter


log = get_logger("app")


def run_migrations() -> None:
    """Execute Alembic migrations programmatically on startup."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    log.info("Running Alembic migrations to head")
    command.upgrade(alembic_cfg, "head")
    log.info("Alembic migrations applied")


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(f"Starting application in {settings.ENV.upper()} mode")
    if settings.is_production:
        log.info("Production mode: Debug disabled, docs disabled, stricter logging")
    else:
        log.info("Development mode: Debug enabled, docs available")

    if settings.RUN_MIGRATIONS:
        try:
            run_migrations()
        except Exception:
            log.exception("Failed to apply migrations on startup")
            raise
    else:
        log.info("Skipping migrations (RUN_MIGRATIONS=false)")

    yield

    log.info("Application shutdown complete")


# -----------------------------------------------------------------------------
# Error rendering
# -----------------------------------------------------------------------------


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return json_response(request, exc.to_payload(), status_code=exc.status_code, headers=exc.headers())


def _first_error(errors) -> str:
    if not errors:
        return "invalid request"
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    msg = first.get("msg", "invalid value")
    return f"{loc}: {msg}" if loc else msg


async def validation_error_handler(request: Request, exc: Exception):
    errors = exc.errors() if isinstance(exc, (RequestValidationError, ValidationError)) else []
    return json_response(request, {"ok": False, "error": _first_error(errors)}, status_code=400)


async def store_error_handler(request: Request, exc: SQLAlchemyError):
    log.error(f"{request.method} {request.url.path} database error: {exc}")
    err = StoreError()
    return json_response(request, err.to_payload(), status_code=err.status_code)


async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception(f"{request.method} {request.url.path} unhandled error: {exc}")
    return json_response(request, {"ok": False, "error": "internal error"}, status_code=500)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Pullview Backend",
        description="Weekly reports and harvested review records with polling ingestion",
        version="0.1.0",
        lifespan=lifespan,
        # Disable docs in production for security
        docs_url="/docs" if settings.docs_enabled else None,
        redoc_url="/redoc" if settings.docs_enabled else None,
        openapi_url="/openapi.json" if settings.docs_enabled else None,
        debug=settings.debug_enabled,
    )

    app.state.rate_limiter = RateLimiter()

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(records_router)
    app.include_router(reports_router)
    app.include_router(ingest_router)
    app.include_router(sources_router)
    app.include_router(health_router)
    app.include_router(stats_router)
    return app


app = create_app()
