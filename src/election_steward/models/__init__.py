"""ORM model registry — import all models so Alembic autogenerate discovers them."""

from election_steward.models.audit_run import AuditRun
from election_steward.models.candidate import Candidate
from election_steward.models.election import Election
from election_steward.models.policy import Policy, PolicyEvent

__all__ = [
    "AuditRun",
    "Candidate",
    "Election",
    "Policy",
    "PolicyEvent",
]
