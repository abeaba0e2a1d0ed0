"""Data steward API endpoints: policies, audit runs, and background audit jobs."""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from election_steward.core.background import task_runner
from election_steward.core.dependencies import get_orchestrator, require_steward_token
from election_steward.lib.steward import AuditOrchestrator, AuditRunNotFoundError
from election_steward.schemas.audit import (
    AuditJobResponse,
    AuditRunResponse,
    PaginatedAuditRunResponse,
    TriggerAuditRequest,
)
from election_steward.schemas.common import PaginationMeta
from election_steward.schemas.policy import (
    PolicyEventResponse,
    PolicyListResponse,
    PolicyResponse,
    PolicyToggleRequest,
)

steward_router = APIRouter(prefix="/steward", tags=["steward"])


# --- Policies ---


@steward_router.get(
    "/policies",
    response_model=PolicyListResponse,
)
async def list_policies(
    include_archived: bool = Query(True),
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> PolicyListResponse:
    """List steward policies and their toggle state."""
    policies = await orchestrator.store.list_policies(include_archived=include_archived)
    return PolicyListResponse(items=[PolicyResponse.model_validate(p) for p in policies])


@steward_router.patch(
    "/policies/{policy_id}",
    response_model=PolicyResponse,
    dependencies=[Depends(require_steward_token)],
)
async def toggle_policy(
    policy_id: str,
    request: PolicyToggleRequest,
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> PolicyResponse:
    """Enable or disable a policy."""
    policy = await orchestrator.toggle_policy(policy_id, request.enabled, request.actor)
    return PolicyResponse.model_validate(policy)


@steward_router.patch(
    "/policies/{policy_id}/auto-fix",
    response_model=PolicyResponse,
    dependencies=[Depends(require_steward_token)],
)
async def toggle_auto_fix(
    policy_id: str,
    request: PolicyToggleRequest,
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> PolicyResponse:
    """Enable or disable auto-fix for an auto-fixable policy."""
    policy = await orchestrator.toggle_auto_fix(policy_id, request.enabled, request.actor)
    return PolicyResponse.model_validate(policy)


@steward_router.post(
    "/policies/{policy_id}/archive",
    response_model=PolicyResponse,
    dependencies=[Depends(require_steward_token)],
)
async def archive_policy(
    policy_id: str,
    actor: str | None = Query(None, max_length=100),
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> PolicyResponse:
    """Archive a policy. Archived policies are never evaluated or toggled again."""
    policy = await orchestrator.archive_policy(policy_id, actor)
    return PolicyResponse.model_validate(policy)


@steward_router.get(
    "/policies/{policy_id}/events",
    response_model=list[PolicyEventResponse],
)
async def list_policy_events(
    policy_id: str,
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> list[PolicyEventResponse]:
    """Toggle history for one policy, oldest first."""
    events = await orchestrator.store.list_policy_events(policy_id)
    return [PolicyEventResponse.model_validate(e) for e in events]


# --- Audit runs ---


@steward_router.post(
    "/audits",
    response_model=AuditRunResponse | AuditJobResponse,
    dependencies=[Depends(require_steward_token)],
)
async def trigger_audit(
    request: TriggerAuditRequest,
    response: Response,
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> AuditRunResponse | AuditJobResponse:
    """Run an audit now, or submit it to the background runner.

    A synchronous run always answers with a ``completed`` or ``failed`` run.
    A background run answers 202 with a job id to poll.
    """
    kwargs: dict[str, Any] = {
        "dry_run": request.dry_run,
        "stage_remediations": request.stage_remediations,
        "source_candidates": request.source_candidates,
        "trigger": "api",
    }
    if not request.background:
        return await orchestrator.run_audit(request.policies, **kwargs)

    # Reject unknown or archived policies before anything is queued
    await orchestrator.registry.reload(orchestrator.store)
    orchestrator.registry.resolve(request.policies)

    job_id = task_runner.submit_task(orchestrator.run_audit(request.policies, **kwargs))
    response.status_code = status.HTTP_202_ACCEPTED
    return AuditJobResponse(job_id=job_id, status=str(task_runner.get_status(job_id)))


@steward_router.get(
    "/audits",
    response_model=PaginatedAuditRunResponse,
)
async def list_audits(
    status_filter: str | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> PaginatedAuditRunResponse:
    """List audit runs, newest first."""
    runs, total = await orchestrator.store.list_runs(
        offset=(page - 1) * page_size,
        limit=page_size,
        status=status_filter,
    )
    return PaginatedAuditRunResponse(
        items=[AuditRunResponse.model_validate(r) for r in runs],
        pagination=PaginationMeta(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=(total + page_size - 1) // page_size,
        ),
    )


@steward_router.get(
    "/audits/{run_id}",
    response_model=AuditRunResponse,
)
async def get_audit(
    run_id: uuid.UUID,
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> AuditRunResponse:
    """Get one audit run with its findings and remediations."""
    run = await orchestrator.store.get_run(run_id)
    if run is None:
        raise AuditRunNotFoundError(run_id)
    return AuditRunResponse.model_validate(run)


@steward_router.post(
    "/audits/{run_id}/apply",
    response_model=AuditRunResponse,
    dependencies=[Depends(require_steward_token)],
)
async def apply_audit(
    run_id: uuid.UUID,
    orchestrator: AuditOrchestrator = Depends(get_orchestrator),
) -> AuditRunResponse:
    """Apply a staged run's remediations as a new run."""
    return await orchestrator.apply_staged_remediations(run_id, trigger="api")


# --- Background jobs ---


def _job_response(job_id: str) -> AuditJobResponse:
    try:
        job_status = task_runner.get_status(job_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found") from exc
    return AuditJobResponse(job_id=job_id, status=str(job_status), run=task_runner.get_result(job_id))


@steward_router.get(
    "/jobs/{job_id}",
    response_model=AuditJobResponse,
)
async def get_job(job_id: str) -> AuditJobResponse:
    """Poll a background audit job."""
    return _job_response(job_id)


@steward_router.delete(
    "/jobs/{job_id}",
    response_model=AuditJobResponse,
    dependencies=[Depends(require_steward_token)],
)
async def cancel_job(job_id: str) -> AuditJobResponse:
    """Cancel a background audit job. Has no effect once its commit has started."""
    response = _job_response(job_id)
    task_runner.cancel(job_id)
    return response.model_copy(update={"status": str(task_runner.get_status(job_id))})
