"""Percentage data audit endpoints."""

from fastapi import APIRouter, Depends

from election_steward.core.config import Settings, get_settings
from election_steward.core.dependencies import get_orchestrator, require_steward_token
from election_steward.lib.steward import POLICY_UNSOURCED_POLLING, AuditOrchestrator
from election_steward.schemas.audit import AuditRunResponse
from election_steward.schemas.data_audit import PercentageAuditResponse
from election_steward.services.data_audit_service import build_percentage_audit

data_audit_router = APIRouter(prefix="/data-audit", tags=["data-audit"])


@data_audit_router.get(
    "/percentages",
    response_model=PercentageAuditResponse,
)
async def audit_percentages(
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings),
) -> PercentageAuditResponse:
    """Summarize polling and vote percentage authenticity across all candidates."""
    return await build_percentage_audit(
        orchestrator.store,
        orchestrator.config.authenticity,
        verified_sources=settings.verified_polling_source_list,
        official_result_markers=settings.official_result_marker_list,
        batch_size=orchestrator.config.batch_size,
    )


@data_audit_router.post(
    "/fix-static-polling",
    response_model=AuditRunResponse,
    dependencies=[Depends(require_steward_token)],
)
async def fix_static_polling(
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> AuditRunResponse:
    """Clear unsourced static polling now, recorded as an audit run."""
    return await orchestrator.run_audit(
        [POLICY_UNSOURCED_POLLING],
        force_remediation=True,
        trigger="api",
    )
