"""Candidate ORM model with polling and result fields."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from election_steward.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class Candidate(Base, UUIDMixin, TimestampMixin):
    """A candidate, optionally linked to a canonical election."""

    __tablename__ = "candidates"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    party: Mapped[str | None] = mapped_column(String(50), nullable=True)
    election_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("elections.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_incumbent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")
    external_ids: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    # Polling
    polling_support: Mapped[float | None] = mapped_column(Float, nullable=True)
    polling_source: Mapped[str | None] = mapped_column(String(200), nullable=True)
    last_polling_update: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    polling_trend: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Results
    vote_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    votes_received: Mapped[int | None] = mapped_column(Integer, nullable=True)
    result_source: Mapped[str | None] = mapped_column(String(200), nullable=True)
    result_certified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")

    # Relationships
    election: Mapped["Election | None"] = relationship(back_populates="candidates")  # noqa: F821

    __table_args__ = (
        Index("idx_candidates_election_id", "election_id"),
        Index("idx_candidates_polling_source", "polling_source"),
    )
