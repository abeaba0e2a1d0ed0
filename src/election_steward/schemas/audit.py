"""Audit run Pydantic v2 request/response schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from election_steward.schemas.common import PaginationMeta
from election_steward.schemas.reconciliation import SourceCandidate


class TriggerAuditRequest(BaseModel):
    """Request to trigger a new audit run."""

    policies: list[str] | None = Field(default=None, description="Policy ids to evaluate (default: all enabled)")
    dry_run: bool = Field(default=False, description="Evaluate only; never write remediations")
    stage_remediations: bool = Field(
        default=False,
        description="Record planned remediations on the run without applying them (implies dry_run)",
    )
    background: bool = Field(default=False, description="Submit to the background runner and return a job id")
    source_candidates: list[SourceCandidate] | None = Field(
        default=None,
        description="Optional source batch used to close candidate coverage gaps",
    )


class RemediationAction(BaseModel):
    """A per-record before/after diff applied (or staged) by an audit run."""

    action: str
    policy_id: str
    record_type: str
    record_id: str
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None


class AuditRunResponse(BaseModel):
    """Response for an audit run."""

    id: UUID
    status: str
    trigger: str
    dry_run: bool
    policies: list[str]
    finding_counts: dict[str, int]
    findings: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    skipped: dict[str, Any] = Field(default_factory=dict)
    records_scanned: dict[str, int] = Field(default_factory=dict)
    remediations: list[RemediationAction] = Field(default_factory=list)
    staged_remediations: list[RemediationAction] | None = None
    source_run_id: UUID | None = None
    error: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class PaginatedAuditRunResponse(BaseModel):
    """Paginated list of audit runs."""

    items: list[AuditRunResponse]
    pagination: PaginationMeta


class AuditJobResponse(BaseModel):
    """Status of a background audit job."""

    job_id: str
    status: str
    run: AuditRunResponse | None = None
