"""Steward policy ORM models.

Policies are seeded from the code catalog at startup and mutated only by
toggle operations. They are never deleted; archiving disables them
permanently. Every mutation appends a PolicyEvent row.
"""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from election_steward.models.base import Base, TimestampMixin, UUIDMixin


class Policy(Base, TimestampMixin):
    """A named, togglable audit policy."""

    __tablename__ = "steward_policies"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    severity: Mapped[int] = mapped_column(Integer, nullable=False, default=3, server_default="3")
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
    auto_fixable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")
    auto_fix_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")

    __table_args__ = (
        CheckConstraint("severity BETWEEN 1 AND 5", name="ck_steward_policy_severity"),
        CheckConstraint("auto_fixable OR NOT auto_fix_enabled", name="ck_steward_policy_auto_fix"),
    )


class PolicyEvent(Base, UUIDMixin):
    """Immutable record of a policy toggle or archive. Write-only."""

    __tablename__ = "steward_policy_events"

    policy_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("steward_policies.id"),
        nullable=False,
    )
    field: Mapped[str] = mapped_column(String(30), nullable=False)
    old_value: Mapped[bool] = mapped_column(Boolean, nullable=False)
    new_value: Mapped[bool] = mapped_column(Boolean, nullable=False)
    actor: Mapped[str | None] = mapped_column(String(100), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_steward_policy_events_policy", "policy_id", "occurred_at"),)
