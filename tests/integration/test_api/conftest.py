"""Fixtures for API integration tests over the in-memory record store."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from election_steward.core.config import Settings, get_settings
from election_steward.core.dependencies import get_record_store
from election_steward.lib.steward import POLICY_CATALOG
from election_steward.main import register_exception_handlers


@pytest.fixture
def steward_token() -> str:
    return "integration-steward-token"


@pytest.fixture
def auth_headers(steward_token: str) -> dict[str, str]:
    return {"X-Steward-Token": steward_token}


@pytest.fixture
def api_settings(steward_token: str) -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        steward_admin_token=steward_token,
        verified_polling_sources="FiveThirtyEight,Emerson College",
        official_result_markers="secretary of state,.gov",
        audit_batch_size=50,
    )


@pytest.fixture
async def app(store, api_settings: Settings) -> FastAPI:
    """Minimal FastAPI app with every v1 router over the test store."""
    from election_steward.api.router import create_router

    await store.ensure_policies(POLICY_CATALOG)
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(create_router(api_settings))
    app.dependency_overrides[get_record_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: api_settings
    return app


@pytest.fixture
async def client(app: FastAPI):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
