"""Pydantic v2 schemas for candidate records.

``CandidateRecord`` is the strict shape the authenticity classifier
operates on. Percentages outside 0-100 or negative vote counts make a
record malformed rather than silently clamped.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from election_steward.models.candidate import Candidate


class CandidateRecord(BaseModel):
    """Validated, immutable candidate record."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    name: str = Field(min_length=1, max_length=200)
    party: str | None = None
    election_id: uuid.UUID | None = None
    incumbent: bool = False
    external_ids: dict[str, str] = Field(default_factory=dict)

    polling_support: float | None = Field(default=None, ge=0, le=100)
    polling_source: str | None = None
    last_polling_update: datetime | None = None
    polling_trend: str | None = None

    vote_percentage: float | None = Field(default=None, ge=0, le=100)
    votes_received: int | None = Field(default=None, ge=0)
    result_source: str | None = None
    result_certified: bool = False

    @field_validator("polling_source", "result_source", mode="before")
    @classmethod
    def _blank_source_is_null(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("last_polling_update")
    @classmethod
    def _assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @property
    def has_polling_values(self) -> bool:
        return self.polling_support is not None

    @property
    def has_result_values(self) -> bool:
        return self.vote_percentage is not None or self.votes_received is not None

    @classmethod
    def from_model(cls, candidate: Candidate) -> "CandidateRecord":
        """Parse an ORM row into a validated record.

        Raises:
            pydantic.ValidationError: If the row is malformed.
        """
        return cls.model_validate(
            {
                "id": candidate.id,
                "name": candidate.name,
                "party": candidate.party,
                "election_id": candidate.election_id,
                "incumbent": candidate.is_incumbent,
                "external_ids": candidate.external_ids or {},
                "polling_support": candidate.polling_support,
                "polling_source": candidate.polling_source,
                "last_polling_update": candidate.last_polling_update,
                "polling_trend": candidate.polling_trend,
                "vote_percentage": candidate.vote_percentage,
                "votes_received": candidate.votes_received,
                "result_source": candidate.result_source,
                "result_certified": candidate.result_certified,
            }
        )


# --- Response schemas ---


class AuthenticityReportResponse(BaseModel):
    """Authenticity classification for one candidate."""

    candidate_id: uuid.UUID
    name: str
    election_id: uuid.UUID | None
    has_authentic_polling: bool
    has_authentic_votes: bool
    has_unsourced_polling: bool
    data_quality: str
    issues: list[str]
