"""Reconciliation API endpoints."""

from fastapi import APIRouter, Depends

from election_steward.core.dependencies import get_orchestrator, require_steward_token
from election_steward.lib.steward import AuditOrchestrator
from election_steward.schemas.reconciliation import LinkResponse, ReconcileRequest, ReconcileResponse
from election_steward.services.reconciliation_service import link_candidates, match_candidates

reconciliation_router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


@reconciliation_router.post(
    "/match",
    response_model=ReconcileResponse,
)
async def match(
    request: ReconcileRequest,
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> ReconcileResponse:
    """Preview how a batch of source candidates matches canonical elections."""
    _, response = await match_candidates(
        orchestrator.store,
        request.candidates,
        orchestrator.config.reconciler,
        batch_size=orchestrator.config.batch_size,
    )
    return response


@reconciliation_router.post(
    "/link",
    response_model=LinkResponse,
    dependencies=[Depends(require_steward_token)],
)
async def link(
    request: ReconcileRequest,
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> LinkResponse:
    """Reconcile a batch and persist a candidate for every new link."""
    return await link_candidates(
        orchestrator.store,
        request.candidates,
        orchestrator.config.reconciler,
        orchestrator.lock,
        batch_size=orchestrator.config.batch_size,
    )
