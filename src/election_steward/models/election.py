"""Election ORM model.

Canonical election records handed to the engine by ingestion collaborators.
Jurisdiction is stored as received so the rule validator can flag malformed
codes instead of the database silently rejecting them.
"""

from datetime import date

from sqlalchemy import Boolean, Date, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from election_steward.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class Election(Base, UUIDMixin, TimestampMixin):
    """A canonical election event."""

    __tablename__ = "elections"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    jurisdiction: Mapped[str | None] = mapped_column(String(10), nullable=True)
    election_date: Mapped[date] = mapped_column(Date, nullable=False)
    level: Mapped[str] = mapped_column(String(20), nullable=False)
    election_type: Mapped[str] = mapped_column(String(50), nullable=False)
    offices: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    external_ids: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    provenance_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    provenance_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")

    # Relationships
    candidates: Mapped[list["Candidate"]] = relationship(back_populates="election")  # noqa: F821

    __table_args__ = (
        Index("idx_elections_election_date", "election_date"),
        Index("idx_elections_jurisdiction", "jurisdiction"),
        Index("idx_elections_level_type", "level", "election_type"),
    )
