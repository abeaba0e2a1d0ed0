"""Policy Pydantic v2 request/response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class PolicyResponse(BaseModel):
    """Response for a steward policy."""

    id: str
    label: str
    category: str
    description: str | None = None
    severity: int
    enabled: bool
    auto_fixable: bool
    auto_fix_enabled: bool
    archived: bool

    model_config = {"from_attributes": True}


class PolicyListResponse(BaseModel):
    """All registered policies."""

    items: list[PolicyResponse]


class PolicyToggleRequest(BaseModel):
    """Request to toggle a policy flag."""

    enabled: bool
    actor: str | None = Field(default=None, max_length=100)


class PolicyEventResponse(BaseModel):
    """One entry in a policy's toggle history."""

    id: UUID
    policy_id: str
    field: str
    old_value: bool
    new_value: bool
    actor: str | None = None
    occurred_at: datetime

    model_config = {"from_attributes": True}
