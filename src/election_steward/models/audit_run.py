"""AuditRun model — one immutable execution of the steward policy set."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from election_steward.models.base import Base, JSONType, UUIDMixin


class AuditRun(Base, UUIDMixin):
    """A single audit run over the full record set.

    Rows are append-only: once a run reaches ``completed`` or ``failed``
    it is never updated again. Applying staged remediations creates a new
    run that points back through ``source_run_id``.
    """

    __tablename__ = "audit_runs"

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        server_default="pending",
    )
    trigger: Mapped[str] = mapped_column(String(20), nullable=False, default="manual", server_default="manual")
    dry_run: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")
    policies: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    finding_counts: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    findings: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    skipped: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    records_scanned: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    remediations: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    staged_remediations: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    source_run_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'running', 'completed', 'failed')", name="ck_audit_run_status"),
        Index("ix_audit_run_status", "status"),
        Index("ix_audit_run_created_at", "created_at"),
    )
