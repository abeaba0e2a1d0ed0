"""Election API endpoints: rule violations and candidate coverage."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from election_steward.core.config import Settings, get_settings
from election_steward.core.dependencies import get_orchestrator, get_record_store
from election_steward.lib.steward import AuditOrchestrator, RecordStore
from election_steward.schemas.election import ElectionViolationsResponse, MissingCandidatesResponse
from election_steward.services.election_service import find_missing_candidates, get_election_violations

elections_router = APIRouter(prefix="/elections", tags=["elections"])


@elections_router.get(
    "/missing-candidates",
    response_model=MissingCandidatesResponse,
)
async def list_missing_candidates(
    window: int | None = Query(None, ge=0, le=366, description="Days ahead of today (default from settings)"),
    lookback: int | None = Query(None, ge=0, le=366, description="Days before today (default from settings)"),
    store: RecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings),
) -> MissingCandidatesResponse:
    """List active elections in the coverage window with no linked candidate."""
    return await find_missing_candidates(
        store,
        window_days=settings.coverage_window_days if window is None else window,
        lookback_days=settings.coverage_lookback_days if lookback is None else lookback,
        batch_size=settings.audit_batch_size,
    )


@elections_router.get(
    "/{election_id}/violations",
    response_model=ElectionViolationsResponse,
)
async def list_election_violations(
    election_id: uuid.UUID,
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> ElectionViolationsResponse:
    """Validate one election against every jurisdiction rule."""
    result = await get_election_violations(orchestrator.store, election_id, orchestrator.config.rule_set)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Election not found")
    return result
