"""Candidate API endpoints."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from election_steward.core.dependencies import get_orchestrator
from election_steward.lib.steward import AuditOrchestrator
from election_steward.schemas.candidate import AuthenticityReportResponse
from election_steward.services.data_audit_service import get_candidate_authenticity

candidates_router = APIRouter(prefix="/candidates", tags=["candidates"])


@candidates_router.get(
    "/{candidate_id}/authenticity",
    response_model=AuthenticityReportResponse,
)
async def get_authenticity(
    candidate_id: uuid.UUID,
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> AuthenticityReportResponse:
    """Classify a candidate's polling and result data."""
    report = await get_candidate_authenticity(orchestrator.store, candidate_id, orchestrator.config.authenticity)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Candidate not found")
    return report
