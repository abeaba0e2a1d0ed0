"""FastAPI dependency injection for the record store, orchestrator, and write access.

Mutating steward endpoints are guarded by a shared admin token sent in the
``X-Steward-Token`` header. The guard is disabled when no token is
configured.
"""

import hmac
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from election_steward.core.config import Settings, get_settings
from election_steward.core.database import get_session_factory
from election_steward.lib.steward import AuditOrchestrator, RecordStore, StewardConfig
from election_steward.services.record_store import SqlRecordStore
from election_steward.services.steward_service import get_write_lock


def get_record_store() -> RecordStore:
    """Return the SQL record store over the application session factory."""
    return SqlRecordStore(get_session_factory())


def get_orchestrator(
    store: Annotated[RecordStore, Depends(get_record_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuditOrchestrator:
    """Return an orchestrator sharing the process-wide write lock."""
    return AuditOrchestrator(store, StewardConfig.from_settings(settings), lock=get_write_lock())


async def require_steward_token(
    settings: Annotated[Settings, Depends(get_settings)],
    x_steward_token: Annotated[str | None, Header()] = None,
) -> None:
    """Reject the request unless it carries the configured steward token.

    Raises:
        HTTPException: 401 if a token is configured and the header is missing or wrong.
    """
    expected = settings.steward_admin_token
    if expected is None:
        return
    if x_steward_token is None or not hmac.compare_digest(x_steward_token, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid steward token",
        )
