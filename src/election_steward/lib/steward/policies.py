"""Steward policy catalog.

Each policy maps to one or more rule-validator rules or authenticity
issues. The catalog is code; the store holds only the toggle state
(enabled, auto-fix, archived) and is seeded from here at startup.
"""

import enum
from dataclasses import dataclass

from election_steward.lib.rule_validator import (
    RULE_ANTI_MOCK,
    RULE_FEDERAL_GENERAL,
    RULE_JURISDICTION_FORMAT,
    RULE_PROVENANCE,
    RULE_SATURDAY,
    RULE_TEMPORAL_SANITY,
)


class PolicyKind(enum.StrEnum):
    """What record type a policy evaluates."""

    ELECTION = "election"
    CANDIDATE = "candidate"
    COVERAGE = "coverage"


class RemediationKind(enum.StrEnum):
    """Bounded automatic corrections a policy may apply."""

    CLEAR_POLLING = "clear_polling"
    LINK_CANDIDATE = "link_candidate"


@dataclass(frozen=True)
class PolicyDefinition:
    """Static definition of a steward policy.

    Attributes:
        id: Stable identifier stored in audit runs and the policy table.
        label: Human-readable name.
        category: Grouping for dashboards.
        severity: 1 (critical) to 5 (low).
        description: What the policy checks.
        kind: Record type evaluated.
        rules: Rule-validator rule names (election policies).
        issues: Authenticity issue codes that count as a finding (candidate policies).
        remediation: Auto-fix this policy may apply, if any.
    """

    id: str
    label: str
    category: str
    severity: int
    description: str
    kind: PolicyKind
    rules: tuple[str, ...] = ()
    issues: tuple[str, ...] = ()
    remediation: RemediationKind | None = None

    @property
    def auto_fixable(self) -> bool:
        return self.remediation is not None


POLICY_ELECTION_DATE_LAW = "election_date_law"
POLICY_SPECIAL_PROVENANCE = "special_election_provenance"
POLICY_MOCK_DATA = "mock_data_detection"
POLICY_JURISDICTION_FORMAT = "jurisdiction_format"
POLICY_TEMPORAL_SANITY = "temporal_sanity"
POLICY_UNSOURCED_POLLING = "unsourced_polling"
POLICY_UNVERIFIED_POLLING = "unverified_polling"
POLICY_UNCERTIFIED_RESULTS = "uncertified_results"
POLICY_CANDIDATE_COVERAGE = "candidate_coverage"

POLICY_CATALOG: tuple[PolicyDefinition, ...] = (
    PolicyDefinition(
        id=POLICY_ELECTION_DATE_LAW,
        label="Election date law",
        category="election_rules",
        severity=1,
        description="Saturday-only jurisdictions hold elections on Saturdays; "
        "November federal general elections fall on a Tuesday.",
        kind=PolicyKind.ELECTION,
        rules=(RULE_SATURDAY, RULE_FEDERAL_GENERAL),
    ),
    PolicyDefinition(
        id=POLICY_SPECIAL_PROVENANCE,
        label="Special election provenance",
        category="election_rules",
        severity=1,
        description="Federal special elections in Saturday-only jurisdictions cite a governor's proclamation.",
        kind=PolicyKind.ELECTION,
        rules=(RULE_PROVENANCE,),
    ),
    PolicyDefinition(
        id=POLICY_MOCK_DATA,
        label="Mock data detection",
        category="data_integrity",
        severity=2,
        description="Titles and descriptions must not contain placeholder words.",
        kind=PolicyKind.ELECTION,
        rules=(RULE_ANTI_MOCK,),
    ),
    PolicyDefinition(
        id=POLICY_JURISDICTION_FORMAT,
        label="Jurisdiction format",
        category="data_integrity",
        severity=2,
        description="Jurisdiction codes are two-letter state codes.",
        kind=PolicyKind.ELECTION,
        rules=(RULE_JURISDICTION_FORMAT,),
    ),
    PolicyDefinition(
        id=POLICY_TEMPORAL_SANITY,
        label="Temporal sanity",
        category="data_integrity",
        severity=3,
        description="Election dates fall within a few years of today.",
        kind=PolicyKind.ELECTION,
        rules=(RULE_TEMPORAL_SANITY,),
    ),
    PolicyDefinition(
        id=POLICY_UNSOURCED_POLLING,
        label="Unsourced polling",
        category="authenticity",
        severity=1,
        description="Polling support without a polling source is static data; auto-fix clears it.",
        kind=PolicyKind.CANDIDATE,
        issues=("polling_unsourced",),
        remediation=RemediationKind.CLEAR_POLLING,
    ),
    PolicyDefinition(
        id=POLICY_UNVERIFIED_POLLING,
        label="Unverified or stale polling",
        category="authenticity",
        severity=3,
        description=(
            "Polling comes from a verified source, was refreshed within the freshness window, "
            "and is not future-dated."
        ),
        kind=PolicyKind.CANDIDATE,
        issues=("polling_source_unverified", "polling_stale", "polling_future_dated"),
    ),
    PolicyDefinition(
        id=POLICY_UNCERTIFIED_RESULTS,
        label="Uncertified results",
        category="authenticity",
        severity=2,
        description="Vote results are certified, officially sourced, and complete.",
        kind=PolicyKind.CANDIDATE,
        issues=("results_uncertified", "results_unofficial_source", "results_incomplete"),
    ),
    PolicyDefinition(
        id=POLICY_CANDIDATE_COVERAGE,
        label="Candidate coverage",
        category="coverage",
        severity=2,
        description="Every active election in the coverage window has at least one linked candidate; "
        "auto-fix links matching candidates from a supplied source batch.",
        kind=PolicyKind.COVERAGE,
        remediation=RemediationKind.LINK_CANDIDATE,
    ),
)

POLICY_DEFINITIONS: dict[str, PolicyDefinition] = {p.id: p for p in POLICY_CATALOG}
