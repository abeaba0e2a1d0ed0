"""Pydantic v2 schemas for candidate reconciliation.

``SourceCandidate`` is the inbound descriptor handed over by ingestion
collaborators. Only the name is required.
"""

import uuid
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SourceCandidate(BaseModel):
    """A candidate descriptor from an external source."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=200)
    party: str | None = None
    jurisdiction: str | None = Field(default=None, description="Two-letter state code")
    office: str | None = None
    election_date: date | None = Field(default=None, description="Election date stated by the source")
    external_ids: dict[str, str] = Field(default_factory=dict)

    @field_validator("jurisdiction", mode="before")
    @classmethod
    def _normalize_jurisdiction(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v


class ReconcileRequest(BaseModel):
    """Batch of source candidates to reconcile."""

    candidates: list[SourceCandidate] = Field(min_length=1, max_length=5000)


class MatchResponse(BaseModel):
    """Outcome for one source candidate."""

    name: str
    jurisdiction: str | None
    office: str | None
    election_id: uuid.UUID | None
    confidence: float
    method: str
    reason: str | None = None


class ReconcileResponse(BaseModel):
    """Preview of a reconciliation batch."""

    total: int
    matched: int
    unresolved: int
    matches: list[MatchResponse]


class LinkResponse(ReconcileResponse):
    """Reconciliation batch with persisted linkages."""

    linked: int
    already_linked: int
    run_id: uuid.UUID | None = None
