"""create steward schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates elections, candidates, steward_policies, steward_policy_events,
and audit_runs with their indexes and constraints.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

# revision identifiers
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- elections ---
    op.create_table(
        "elections",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("jurisdiction", sa.String(10), nullable=True),
        sa.Column("election_date", sa.Date, nullable=False),
        sa.Column("level", sa.String(20), nullable=False),
        sa.Column("election_type", sa.String(50), nullable=False),
        sa.Column("offices", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("external_ids", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("provenance_type", sa.String(50), nullable=True),
        sa.Column("provenance_url", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_elections_election_date", "elections", ["election_date"])
    op.create_index("idx_elections_jurisdiction", "elections", ["jurisdiction"])
    op.create_index("idx_elections_level_type", "elections", ["level", "election_type"])

    # --- candidates ---
    op.create_table(
        "candidates",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("party", sa.String(50), nullable=True),
        sa.Column(
            "election_id",
            UUID(as_uuid=True),
            sa.ForeignKey("elections.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_incumbent", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("external_ids", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("polling_support", sa.Float, nullable=True),
        sa.Column("polling_source", sa.String(200), nullable=True),
        sa.Column("last_polling_update", sa.DateTime(timezone=True), nullable=True),
        sa.Column("polling_trend", sa.String(20), nullable=True),
        sa.Column("vote_percentage", sa.Float, nullable=True),
        sa.Column("votes_received", sa.Integer, nullable=True),
        sa.Column("result_source", sa.String(200), nullable=True),
        sa.Column("result_certified", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_candidates_election_id", "candidates", ["election_id"])
    op.create_index("idx_candidates_polling_source", "candidates", ["polling_source"])

    # --- steward_policies ---
    op.create_table(
        "steward_policies",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("label", sa.String(200), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("severity", sa.Integer, nullable=False, server_default="3"),
        sa.Column("enabled", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("auto_fixable", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("auto_fix_enabled", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("archived", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("severity BETWEEN 1 AND 5", name="ck_steward_policy_severity"),
        sa.CheckConstraint("auto_fixable OR NOT auto_fix_enabled", name="ck_steward_policy_auto_fix"),
    )

    # --- steward_policy_events ---
    op.create_table(
        "steward_policy_events",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("policy_id", sa.String(64), sa.ForeignKey("steward_policies.id"), nullable=False),
        sa.Column("field", sa.String(30), nullable=False),
        sa.Column("old_value", sa.Boolean, nullable=False),
        sa.Column("new_value", sa.Boolean, nullable=False),
        sa.Column("actor", sa.String(100), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_steward_policy_events_policy", "steward_policy_events", ["policy_id", "occurred_at"])

    # --- audit_runs ---
    op.create_table(
        "audit_runs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("trigger", sa.String(20), nullable=False, server_default="manual"),
        sa.Column("dry_run", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("policies", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("finding_counts", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("findings", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("skipped", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("records_scanned", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("remediations", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("staged_remediations", JSONB, nullable=True),
        sa.Column("source_run_id", UUID(as_uuid=True), nullable=True),
        sa.Column("error", sa.Text, nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('pending', 'running', 'completed', 'failed')",
            name="ck_audit_run_status",
        ),
    )
    op.create_index("ix_audit_run_status", "audit_runs", ["status"])
    op.create_index("ix_audit_run_created_at", "audit_runs", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_runs")
    op.drop_table("steward_policy_events")
    op.drop_table("steward_policies")
    op.drop_table("candidates")
    op.drop_table("elections")
