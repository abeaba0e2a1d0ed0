"""Rule validator library — evaluate election records against jurisdiction law.

Public API:
    - validate: Run all (or selected) rules against one ElectionRecord
    - Violation: Structured finding (code, message, rule)
    - RuleSet: Jurisdiction configuration (Saturday-only states, strictness)
    - RULES: Registry of rule name → check function
    - federal_election_day: Tuesday after the first Monday in November
"""

from election_steward.lib.rule_validator.rules import (
    DEFAULT_RULE_SET,
    GOVERNOR_PROCLAMATION,
    MOCK_DATA_WORDS,
    RULE_ANTI_MOCK,
    RULE_FEDERAL_GENERAL,
    RULE_JURISDICTION_FORMAT,
    RULE_PROVENANCE,
    RULE_SATURDAY,
    RULE_TEMPORAL_SANITY,
    RULES,
    RuleSet,
    Violation,
    federal_election_day,
    validate,
)

__all__ = [
    "DEFAULT_RULE_SET",
    "GOVERNOR_PROCLAMATION",
    "MOCK_DATA_WORDS",
    "RULES",
    "RULE_ANTI_MOCK",
    "RULE_FEDERAL_GENERAL",
    "RULE_JURISDICTION_FORMAT",
    "RULE_PROVENANCE",
    "RULE_SATURDAY",
    "RULE_TEMPORAL_SANITY",
    "RuleSet",
    "Violation",
    "federal_election_day",
    "validate",
]
