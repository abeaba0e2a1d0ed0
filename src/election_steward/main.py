"""FastAPI application factory.

Creates the FastAPI app with lifespan management, exception handlers,
and OpenAPI metadata.
"""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from election_steward.core.config import get_settings
from election_steward.core.database import dispose_engine, get_session_factory, init_engine
from election_steward.core.logging import setup_logging
from election_steward.lib.steward import (
    AuditRunImmutableError,
    AuditRunNotFoundError,
    NoStagedRemediationError,
    PolicyArchivedError,
    PolicyNotFoundError,
    StoreUnavailableError,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle: init engine and seed policies on startup, dispose on shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir)
    init_engine(settings.database_url, echo=False, schema=settings.database_schema)

    from election_steward.services.steward_service import audit_schedule_loop, seed_policies

    try:
        await seed_policies(settings, get_session_factory())
    except StoreUnavailableError:
        logger.exception("Could not seed steward policies at startup")

    # Start scheduled audit background task
    schedule_task = None
    if settings.audit_schedule_enabled:
        schedule_task = asyncio.create_task(audit_schedule_loop(settings.audit_schedule_interval, settings))

    yield

    # Cancel scheduled audit task
    if schedule_task is not None:
        schedule_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await schedule_task

    await dispose_engine()


def register_exception_handlers(app: FastAPI) -> None:
    """Map engine exceptions to HTTP responses."""

    @app.exception_handler(PolicyNotFoundError)
    @app.exception_handler(AuditRunNotFoundError)
    async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PolicyArchivedError)
    @app.exception_handler(NoStagedRemediationError)
    @app.exception_handler(AuditRunImmutableError)
    async def conflict_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
        logger.error("Store unavailable while handling {} {}: {}", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": "Record store unavailable"})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Election Steward",
        description="Election data integrity rules, authenticity scoring, candidate reconciliation, and audits",
        version="0.1.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # Register middleware and routers
    from election_steward.api.router import create_router, setup_middleware

    setup_middleware(app, settings)
    app.include_router(create_router(settings))

    return app
