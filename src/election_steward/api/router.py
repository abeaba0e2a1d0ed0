"""Root API router with /api/v1 prefix and middleware registration."""

from fastapi import APIRouter, FastAPI

from election_steward.api.middleware import SecurityHeadersMiddleware, setup_cors
from election_steward.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from election_steward.api.v1.candidates import candidates_router
    from election_steward.api.v1.data_audit import data_audit_router
    from election_steward.api.v1.elections import elections_router
    from election_steward.api.v1.reconciliation import reconciliation_router
    from election_steward.api.v1.steward import steward_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)
    root_router.include_router(elections_router)
    root_router.include_router(candidates_router)
    root_router.include_router(data_audit_router)
    root_router.include_router(steward_router)
    root_router.include_router(reconciliation_router)

    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
