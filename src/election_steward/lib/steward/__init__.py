"""Steward library — audit orchestration, policy catalog, and engine errors.

Public API:
    - AuditOrchestrator: Run audits, toggle policies, apply staged remediations
    - StewardConfig: Engine configuration built once from settings
    - RecordStore: Abstract record store consumed by the orchestrator
    - PolicyRegistry / PolicyState: Atomic snapshot of stored policy state
    - POLICY_CATALOG / POLICY_DEFINITIONS: Code-defined policies
    - StewardError and subclasses: Engine exception taxonomy
"""

from election_steward.lib.steward.errors import (
    AuditRunImmutableError,
    AuditRunNotFoundError,
    NoStagedRemediationError,
    PolicyArchivedError,
    PolicyNotFoundError,
    StewardError,
    StoreUnavailableError,
)
from election_steward.lib.steward.orchestrator import POLLING_FIELDS, AuditOrchestrator, StewardConfig
from election_steward.lib.steward.policies import (
    POLICY_CANDIDATE_COVERAGE,
    POLICY_CATALOG,
    POLICY_DEFINITIONS,
    POLICY_ELECTION_DATE_LAW,
    POLICY_JURISDICTION_FORMAT,
    POLICY_MOCK_DATA,
    POLICY_SPECIAL_PROVENANCE,
    POLICY_TEMPORAL_SANITY,
    POLICY_UNCERTIFIED_RESULTS,
    POLICY_UNSOURCED_POLLING,
    POLICY_UNVERIFIED_POLLING,
    PolicyDefinition,
    PolicyKind,
    RemediationKind,
)
from election_steward.lib.steward.registry import PolicyRegistry, PolicyState
from election_steward.lib.steward.store import RecordStore

__all__ = [
    "POLICY_CANDIDATE_COVERAGE",
    "POLICY_CATALOG",
    "POLICY_DEFINITIONS",
    "POLICY_ELECTION_DATE_LAW",
    "POLICY_JURISDICTION_FORMAT",
    "POLICY_MOCK_DATA",
    "POLICY_SPECIAL_PROVENANCE",
    "POLICY_TEMPORAL_SANITY",
    "POLICY_UNCERTIFIED_RESULTS",
    "POLICY_UNSOURCED_POLLING",
    "POLICY_UNVERIFIED_POLLING",
    "POLLING_FIELDS",
    "AuditOrchestrator",
    "AuditRunImmutableError",
    "AuditRunNotFoundError",
    "NoStagedRemediationError",
    "PolicyArchivedError",
    "PolicyDefinition",
    "PolicyKind",
    "PolicyNotFoundError",
    "PolicyRegistry",
    "PolicyState",
    "RecordStore",
    "RemediationKind",
    "StewardConfig",
    "StewardError",
    "StoreUnavailableError",
]
