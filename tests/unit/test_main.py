"""Tests for the FastAPI application factory module."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from election_steward.core.config import Settings
from election_steward.lib.steward import StoreUnavailableError
from election_steward.main import create_app, lifespan


def _settings(**overrides: object) -> Settings:
    return Settings(database_url="sqlite+aiosqlite:///:memory:", **overrides)  # type: ignore[arg-type]


class TestCreateApp:
    """Tests for create_app."""

    @pytest.fixture
    def app(self):
        with patch("election_steward.main.get_settings", return_value=_settings()):
            return create_app()

    def test_app_is_created(self, app) -> None:
        assert app.title == "Election Steward"

    def test_openapi_lists_steward_routes(self, app) -> None:
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/openapi.json")
        assert response.status_code == 200
        paths = response.json()["paths"]
        assert "/api/v1/steward/audits" in paths
        assert "/api/v1/elections/{election_id}/violations" in paths
        assert "/api/v1/reconciliation/match" in paths

    def test_exception_handlers_registered(self, app) -> None:
        assert ValueError in app.exception_handlers
        assert StoreUnavailableError in app.exception_handlers


class TestAppLifespan:
    """Tests for lifespan management."""

    async def test_lifespan_init_seed_and_dispose(self) -> None:
        mock_app = AsyncMock()

        with (
            patch("election_steward.main.get_settings", return_value=_settings()),
            patch("election_steward.main.setup_logging") as mock_setup_logging,
            patch("election_steward.main.init_engine") as mock_init_engine,
            patch("election_steward.main.get_session_factory"),
            patch("election_steward.main.dispose_engine", new_callable=AsyncMock) as mock_dispose,
            patch("election_steward.services.steward_service.seed_policies", new_callable=AsyncMock) as mock_seed,
        ):
            async with lifespan(mock_app):
                mock_setup_logging.assert_called_once()
                mock_init_engine.assert_called_once()
                mock_seed.assert_awaited_once()

            mock_dispose.assert_awaited_once()

    async def test_store_down_at_startup_does_not_block(self) -> None:
        mock_app = AsyncMock()

        with (
            patch("election_steward.main.get_settings", return_value=_settings()),
            patch("election_steward.main.setup_logging"),
            patch("election_steward.main.init_engine"),
            patch("election_steward.main.get_session_factory"),
            patch("election_steward.main.dispose_engine", new_callable=AsyncMock) as mock_dispose,
            patch(
                "election_steward.services.steward_service.seed_policies",
                new_callable=AsyncMock,
                side_effect=StoreUnavailableError("refused", "ensure_policies"),
            ),
        ):
            async with lifespan(mock_app):
                pass

            mock_dispose.assert_awaited_once()

    async def test_schedule_task_cancelled_on_shutdown(self) -> None:
        mock_app = AsyncMock()
        loop_mock = AsyncMock()

        with (
            patch("election_steward.main.get_settings", return_value=_settings(audit_schedule_enabled=True)),
            patch("election_steward.main.setup_logging"),
            patch("election_steward.main.init_engine"),
            patch("election_steward.main.get_session_factory"),
            patch("election_steward.main.dispose_engine", new_callable=AsyncMock),
            patch("election_steward.services.steward_service.seed_policies", new_callable=AsyncMock),
            patch("election_steward.services.steward_service.audit_schedule_loop", loop_mock),
        ):
            async with lifespan(mock_app):
                pass

        loop_mock.assert_called_once()
        assert loop_mock.call_args.args[0] == 3600
