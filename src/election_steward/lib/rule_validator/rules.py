"""Jurisdiction election-law rules.

Each rule inspects one ``ElectionRecord`` and yields zero or one
``Violation``. Rules are independent: ``validate`` runs every selected rule
and collects all violations instead of stopping at the first.

Encoded law:
    - Louisiana (and any configured Saturday-only state) holds elections on
      Saturdays (La. R.S. 18:402).
    - Federal general elections fall on a Tuesday in November (2 U.S.C. 7).
    - Louisiana federal special elections are ordered by gubernatorial
      proclamation (La. R.S. 18:591).
"""

import calendar
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta

from election_steward.schemas.election import ElectionRecord

MOCK_DATA_WORDS: tuple[str, ...] = ("test", "demo", "example", "placeholder", "mock", "sample", "dummy")

GOVERNOR_PROCLAMATION = "governor_proclamation"

_JURISDICTION_RE = re.compile(r"^[A-Z]{2}$")

# Rule names (stable identifiers referenced by policies)
RULE_SATURDAY = "saturday_only"
RULE_FEDERAL_GENERAL = "federal_general_tuesday"
RULE_PROVENANCE = "special_election_provenance"
RULE_ANTI_MOCK = "anti_mock"
RULE_JURISDICTION_FORMAT = "jurisdiction_format"
RULE_TEMPORAL_SANITY = "temporal_sanity"


@dataclass(frozen=True)
class Violation:
    """A structured rule finding. Never raised, always returned."""

    code: str
    message: str
    rule: str


@dataclass(frozen=True)
class RuleSet:
    """Configuration for the rule validator.

    Attributes:
        saturday_only: Jurisdiction codes whose elections must be on Saturday.
        strict_federal_tuesday: When True, a November federal general must be
            exactly the Tuesday after the first Monday, not just any Tuesday.
        max_year_drift: Largest allowed |election year - current year|.
    """

    saturday_only: frozenset[str] = field(default_factory=lambda: frozenset({"LA"}))
    strict_federal_tuesday: bool = False
    max_year_drift: int = 4


DEFAULT_RULE_SET = RuleSet()


def federal_election_day(year: int) -> date:
    """Return the Tuesday after the first Monday in November of ``year``."""
    nov1 = date(year, 11, 1)
    days_to_monday = (calendar.MONDAY - nov1.weekday()) % 7
    return nov1 + timedelta(days=days_to_monday + 1)


def _jurisdiction_key(election: ElectionRecord) -> str | None:
    return election.jurisdiction.upper() if election.jurisdiction else None


def check_saturday_only(election: ElectionRecord, rule_set: RuleSet, today: date) -> Violation | None:
    """Elections in a Saturday-only jurisdiction must fall on a Saturday."""
    key = _jurisdiction_key(election)
    if key is None or key not in rule_set.saturday_only:
        return None
    weekday = election.election_date.weekday()
    if weekday == calendar.SATURDAY:
        return None
    return Violation(
        code=f"invalid_{key.lower()}_date",
        message=f"{key} elections must be held on Saturday. Got {calendar.day_name[weekday]}.",
        rule=RULE_SATURDAY,
    )


def check_federal_general(election: ElectionRecord, rule_set: RuleSet, today: date) -> Violation | None:
    """November federal general elections outside Saturday-only states fall on Tuesday."""
    if election.level != "federal" or election.election_type != "general":
        return None
    if _jurisdiction_key(election) in rule_set.saturday_only:
        return None
    election_date = election.election_date
    if election_date.month != 11:
        return None

    if rule_set.strict_federal_tuesday:
        expected = federal_election_day(election_date.year)
        if election_date == expected:
            return None
        return Violation(
            code="invalid_federal_date",
            message=(
                "Federal general elections must be on the Tuesday after the first Monday in November "
                f"({expected.isoformat()}). Got {election_date.isoformat()}."
            ),
            rule=RULE_FEDERAL_GENERAL,
        )

    if election_date.weekday() == calendar.TUESDAY:
        return None
    return Violation(
        code="invalid_federal_date",
        message=(
            "Federal general elections must be on Tuesday after first Monday in November. "
            f"Got {calendar.day_name[election_date.weekday()]}."
        ),
        rule=RULE_FEDERAL_GENERAL,
    )


def check_special_election_provenance(
    election: ElectionRecord,
    rule_set: RuleSet,
    today: date,
) -> Violation | None:
    """Federal special elections in Saturday-only states need a governor's proclamation."""
    key = _jurisdiction_key(election)
    if key is None or key not in rule_set.saturday_only:
        return None
    if election.level != "federal" or "special" not in election.election_type:
        return None
    provenance = election.provenance
    if provenance is not None and provenance.type == GOVERNOR_PROCLAMATION and provenance.url.strip():
        return None
    return Violation(
        code="missing_proclamation",
        message=f"{key} federal special elections require a governor's proclamation with a source URL.",
        rule=RULE_PROVENANCE,
    )


def check_not_mock_data(election: ElectionRecord, rule_set: RuleSet, today: date) -> Violation | None:
    """Titles or descriptions containing placeholder words are mock data."""
    title = election.title.lower()
    description = (election.description or "").lower()
    for word in MOCK_DATA_WORDS:
        if word in title or word in description:
            return Violation(
                code="mock_data_detected",
                message=f"Election appears to be mock/test data (contains '{word}')",
                rule=RULE_ANTI_MOCK,
            )
    return None


def check_jurisdiction_format(election: ElectionRecord, rule_set: RuleSet, today: date) -> Violation | None:
    """A jurisdiction, when present, is exactly two uppercase letters."""
    if election.jurisdiction is None or _JURISDICTION_RE.match(election.jurisdiction):
        return None
    return Violation(
        code="invalid_state",
        message=f"Election must have a valid 2-letter state code (got '{election.jurisdiction}')",
        rule=RULE_JURISDICTION_FORMAT,
    )


def check_temporal_sanity(election: ElectionRecord, rule_set: RuleSet, today: date) -> Violation | None:
    """Elections more than ``max_year_drift`` years away are unrealistic."""
    years_diff = abs(election.election_date.year - today.year)
    if years_diff <= rule_set.max_year_drift:
        return None
    return Violation(
        code="unrealistic_date",
        message=f"Election date is unrealistic ({years_diff} years from now)",
        rule=RULE_TEMPORAL_SANITY,
    )


RuleCheck = Callable[[ElectionRecord, RuleSet, date], Violation | None]

RULES: dict[str, RuleCheck] = {
    RULE_SATURDAY: check_saturday_only,
    RULE_FEDERAL_GENERAL: check_federal_general,
    RULE_PROVENANCE: check_special_election_provenance,
    RULE_ANTI_MOCK: check_not_mock_data,
    RULE_JURISDICTION_FORMAT: check_jurisdiction_format,
    RULE_TEMPORAL_SANITY: check_temporal_sanity,
}


def validate(
    election: ElectionRecord,
    *,
    rules: Iterable[str] | None = None,
    rule_set: RuleSet = DEFAULT_RULE_SET,
    today: date | None = None,
) -> list[Violation]:
    """Evaluate an election against jurisdiction law.

    Args:
        election: The validated election record.
        rules: Rule names to run (default: all rules, in registry order).
        rule_set: Jurisdiction configuration.
        today: Evaluation date (default: today in UTC).

    Returns:
        Every violation found, in rule order.

    Raises:
        KeyError: If ``rules`` names an unknown rule.
    """
    today = today or datetime.now(UTC).date()
    selected = list(RULES) if rules is None else list(rules)
    violations: list[Violation] = []
    for name in selected:
        violation = RULES[name](election, rule_set, today)
        if violation is not None:
            violations.append(violation)
    return violations
