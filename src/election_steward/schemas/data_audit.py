"""Percentage data audit Pydantic v2 schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class QualityBreakdown(BaseModel):
    """Candidate counts per authenticity tier."""

    excellent: int = 0
    good: int = 0
    fair: int = 0
    poor: int = 0


class CandidatePercentageDetail(BaseModel):
    """Detail row for a candidate carrying polling or vote percentages."""

    id: uuid.UUID
    name: str
    election_id: uuid.UUID | None
    polling_support: float | None
    vote_percentage: float | None
    last_polling_update: datetime | None
    polling_source: str | None
    has_authentic_polling: bool
    has_authentic_votes: bool
    data_quality: str
    issues: list[str]


class PercentageAuditSummary(BaseModel):
    """Aggregate authenticity counts across all candidates."""

    total_candidates: int = 0
    candidates_with_polling_data: int = 0
    candidates_with_vote_data: int = 0
    candidates_with_authentic_polling: int = 0
    candidates_with_authentic_votes: int = 0
    malformed_candidates: int = 0
    data_quality_breakdown: QualityBreakdown = Field(default_factory=QualityBreakdown)
    detailed_report: list[CandidatePercentageDetail] = Field(default_factory=list)


class AuthenticityCriteria(BaseModel):
    """Human-readable description of what counts as authentic."""

    polling_requirements: list[str]
    vote_requirements: list[str]
    verified_sources: list[str]
    official_result_markers: list[str]


class PercentageAuditResponse(BaseModel):
    """Response for the percentage data audit."""

    timestamp: datetime
    summary: PercentageAuditSummary
    authenticity_criteria: AuthenticityCriteria
