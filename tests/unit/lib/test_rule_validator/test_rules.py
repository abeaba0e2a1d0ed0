"""Tests for the jurisdiction election-law rules."""

import uuid
from datetime import date, timedelta

import pytest

from election_steward.lib.rule_validator import (
    RULE_ANTI_MOCK,
    RULE_JURISDICTION_FORMAT,
    RULES,
    RuleSet,
    federal_election_day,
    validate,
)
from election_steward.schemas.election import ElectionRecord, Provenance

TODAY = date(2026, 10, 19)


def _record(**overrides) -> ElectionRecord:
    defaults = {
        "id": uuid.uuid4(),
        "title": "General Election",
        "jurisdiction": "GA",
        "election_date": date(2026, 11, 3),
        "level": "federal",
        "election_type": "general",
    }
    defaults.update(overrides)
    return ElectionRecord(**defaults)


def _codes(record: ElectionRecord, **kwargs) -> list[str]:
    return [v.code for v in validate(record, today=TODAY, **kwargs)]


class TestFederalElectionDay:
    @pytest.mark.parametrize(
        ("year", "expected"),
        [
            (2020, date(2020, 11, 3)),
            (2022, date(2022, 11, 8)),
            (2024, date(2024, 11, 5)),
            (2026, date(2026, 11, 3)),
        ],
    )
    def test_tuesday_after_first_monday(self, year, expected):
        assert federal_election_day(year) == expected

    def test_never_november_first(self):
        # Nov 1 2022 is a Tuesday; election day is the following week
        assert federal_election_day(2022) != date(2022, 11, 1)


class TestSaturdayOnly:
    def test_all_saturdays_accepted(self):
        day = date(2026, 1, 3)
        while day.year == 2026:
            record = _record(jurisdiction="LA", level="state", election_type="primary", election_date=day)
            assert "invalid_la_date" not in _codes(record)
            day += timedelta(days=7)

    @pytest.mark.parametrize("offset", [1, 2, 3, 4, 5, 6])
    def test_non_saturdays_flagged(self, offset):
        day = date(2026, 11, 7) + timedelta(days=offset)
        record = _record(jurisdiction="LA", level="state", election_type="general", election_date=day)
        violations = validate(record, today=TODAY)
        assert [v.code for v in violations] == ["invalid_la_date"]
        assert day.strftime("%A") in violations[0].message

    def test_lowercase_jurisdiction_still_checked(self):
        record = _record(jurisdiction="la", level="local", election_type="general", election_date=date(2026, 11, 3))
        assert "invalid_la_date" in _codes(record)

    def test_configured_saturday_states(self):
        rule_set = RuleSet(saturday_only=frozenset({"LA", "TX"}))
        record = _record(jurisdiction="TX", level="local", election_type="general", election_date=date(2026, 11, 3))
        assert _codes(record, rule_set=rule_set) == ["invalid_tx_date"]

    def test_other_states_not_checked(self):
        record = _record(jurisdiction="GA", level="state", election_type="runoff", election_date=date(2026, 12, 1))
        assert _codes(record) == []


class TestFederalGeneral:
    def test_tuesday_passes(self):
        assert _codes(_record(election_date=date(2026, 11, 3))) == []

    @pytest.mark.parametrize("day", [date(2026, 11, 2), date(2026, 11, 4), date(2026, 11, 7)])
    def test_non_tuesday_flagged(self, day):
        assert _codes(_record(election_date=day)) == ["invalid_federal_date"]

    def test_any_november_tuesday_passes_by_default(self):
        assert _codes(_record(election_date=date(2026, 11, 10))) == []

    def test_strict_mode_requires_exact_day(self):
        strict = RuleSet(strict_federal_tuesday=True)
        assert _codes(_record(election_date=date(2026, 11, 10)), rule_set=strict) == ["invalid_federal_date"]
        assert _codes(_record(election_date=date(2026, 11, 3)), rule_set=strict) == []

    def test_outside_november_not_checked(self):
        assert _codes(_record(election_date=date(2026, 6, 10))) == []

    def test_non_federal_not_checked(self):
        assert _codes(_record(level="state", election_date=date(2026, 11, 4))) == []

    def test_saturday_state_federal_general_uses_saturday_rule(self):
        record = _record(jurisdiction="LA", election_date=date(2026, 11, 3))
        assert _codes(record) == ["invalid_la_date"]


class TestSpecialElectionProvenance:
    def test_missing_proclamation_then_cleared(self):
        record = _record(jurisdiction="LA", election_type="special", election_date=date(2026, 11, 14))
        assert _codes(record) == ["missing_proclamation"]

        fixed = record.model_copy(
            update={
                "provenance": Provenance(
                    type="governor_proclamation",
                    url="https://gov.louisiana.gov/proclamations/2026-special.pdf",
                )
            }
        )
        assert "missing_proclamation" not in _codes(fixed)

    def test_wrong_provenance_type(self):
        record = _record(
            jurisdiction="LA",
            election_type="special",
            election_date=date(2026, 11, 14),
            provenance=Provenance(type="press_release", url="https://example.org"),
        )
        assert "missing_proclamation" in _codes(record, rules=["special_election_provenance"])

    def test_proclamation_without_url(self):
        record = _record(
            jurisdiction="LA",
            election_type="special_primary",
            election_date=date(2026, 11, 14),
            provenance=Provenance(type="governor_proclamation", url="  "),
        )
        assert _codes(record) == ["missing_proclamation"]

    def test_other_states_do_not_need_proclamation(self):
        record = _record(jurisdiction="GA", election_type="special", election_date=date(2026, 6, 16))
        assert _codes(record) == []


class TestAntiMock:
    @pytest.mark.parametrize("word", ["test", "demo", "example", "placeholder", "mock", "sample", "dummy"])
    def test_denylisted_word_in_title(self, word):
        violations = validate(_record(title=f"2026 {word.upper()} Election"), today=TODAY)
        assert [v.code for v in violations] == ["mock_data_detected"]
        assert f"'{word}'" in violations[0].message

    def test_word_in_description(self):
        record = _record(description="Sample data for the staging dashboard")
        assert _codes(record) == ["mock_data_detected"]

    def test_independent_of_other_rules(self):
        record = _record(
            title="Demo special",
            jurisdiction="LA",
            election_type="special",
            election_date=date(2026, 11, 3),
        )
        codes = _codes(record)
        assert "mock_data_detected" in codes
        assert "invalid_la_date" in codes
        assert "missing_proclamation" in codes


class TestJurisdictionFormat:
    @pytest.mark.parametrize("jurisdiction", ["Georgia", "G", "G1", "ga", "GEO"])
    def test_invalid_codes(self, jurisdiction):
        record = _record(jurisdiction=jurisdiction, level="state")
        assert "invalid_state" in _codes(record, rules=[RULE_JURISDICTION_FORMAT])

    def test_missing_jurisdiction_passes(self):
        assert _codes(_record(jurisdiction=None, level="state"), rules=[RULE_JURISDICTION_FORMAT]) == []


class TestTemporalSanity:
    def test_far_future_flagged(self):
        violations = validate(_record(level="state", election_date=date(2035, 5, 5)), today=TODAY)
        assert [v.code for v in violations] == ["unrealistic_date"]
        assert "9 years" in violations[0].message

    def test_far_past_flagged(self):
        assert _codes(_record(level="state", election_date=date(2019, 3, 3))) == ["unrealistic_date"]

    def test_within_drift_passes(self):
        assert _codes(_record(level="state", election_date=date(2030, 3, 3))) == []


class TestValidate:
    def test_selected_rules_only(self):
        record = _record(title="Mock election", election_date=date(2026, 11, 4))
        assert _codes(record, rules=[RULE_ANTI_MOCK]) == ["mock_data_detected"]

    def test_unknown_rule_raises(self):
        with pytest.raises(KeyError):
            validate(_record(), rules=["no_such_rule"], today=TODAY)

    def test_violations_in_registry_order(self):
        record = _record(title="Test", jurisdiction="Louisiana", election_date=date(2040, 11, 6))
        rules = [v.rule for v in validate(record, today=TODAY)]
        assert rules == [r for r in RULES if r in rules]

    def test_deterministic(self):
        record = _record(title="Placeholder", election_date=date(2026, 11, 5))
        assert validate(record, today=TODAY) == validate(record, today=TODAY)
