"""Pydantic v2 schemas for election records.

``ElectionRecord`` is the strict shape the rule validator operates on.
Store rows and inbound payloads are parsed into it at the edge; anything
that fails to parse is rejected with a ``pydantic.ValidationError`` and is
never handed to the validator.
"""

import uuid
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from election_steward.models.election import Election

ElectionLevel = Literal["federal", "state", "local"]


class Provenance(BaseModel):
    """Legal authority ordering an election (e.g., a governor's proclamation)."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(min_length=1, max_length=50)
    url: str = ""


class ElectionRecord(BaseModel):
    """Validated, immutable election record."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    title: str = Field(min_length=1, max_length=500)
    description: str | None = None
    jurisdiction: str | None = None
    election_date: date
    level: ElectionLevel
    election_type: str = Field(min_length=1, max_length=50)
    offices: tuple[str, ...] = ()
    external_ids: dict[str, str] = Field(default_factory=dict)
    provenance: Provenance | None = None
    active: bool = True

    @field_validator("level", "election_type", mode="before")
    @classmethod
    def _lowercase(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("jurisdiction", mode="before")
    @classmethod
    def _blank_jurisdiction_is_null(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @classmethod
    def from_model(cls, election: Election) -> "ElectionRecord":
        """Parse an ORM row into a validated record.

        Raises:
            pydantic.ValidationError: If the row is malformed.
        """
        provenance = None
        if election.provenance_type:
            provenance = {"type": election.provenance_type, "url": election.provenance_url or ""}
        return cls.model_validate(
            {
                "id": election.id,
                "title": election.title,
                "description": election.description,
                "jurisdiction": election.jurisdiction,
                "election_date": election.election_date,
                "level": election.level,
                "election_type": election.election_type,
                "offices": election.offices or (),
                "external_ids": election.external_ids or {},
                "provenance": provenance,
                "active": election.is_active,
            }
        )


# --- Response schemas ---


class ViolationResponse(BaseModel):
    """A single rule violation."""

    code: str
    message: str
    rule: str


class ElectionViolationsResponse(BaseModel):
    """Violations for one election record."""

    election_id: uuid.UUID
    title: str
    jurisdiction: str | None
    election_date: date
    violations: list[ViolationResponse]
    malformed: bool = False
    errors: list[str] = Field(default_factory=list)


class CoverageGapResponse(BaseModel):
    """An election inside the coverage window with no linked candidates."""

    election_id: uuid.UUID
    title: str
    jurisdiction: str | None
    election_date: date
    days_until: int


class MissingCandidatesResponse(BaseModel):
    """Coverage query result."""

    window_days: int
    lookback_days: int
    checked: int
    skipped_malformed: int = 0
    skipped_election_ids: list[uuid.UUID] = Field(default_factory=list)
    missing: list[CoverageGapResponse]
