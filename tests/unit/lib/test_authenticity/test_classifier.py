"""Tests for the candidate authenticity classifier."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from election_steward.lib.authenticity import (
    AuthenticityConfig,
    DataQuality,
    classify,
    is_official_result_source,
    is_verified_source,
)
from election_steward.schemas.candidate import CandidateRecord

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)

CONFIG = AuthenticityConfig.build(
    ["FiveThirtyEight", "Emerson College"],
    ["Secretary of State", ".gov"],
    freshness_days=7,
)


def _candidate(**overrides) -> CandidateRecord:
    defaults = {"id": uuid.uuid4(), "name": "Jane Doe"}
    defaults.update(overrides)
    return CandidateRecord(**defaults)


def _live_polling() -> dict:
    return {
        "polling_support": 44.5,
        "polling_source": "FiveThirtyEight",
        "last_polling_update": NOW - timedelta(days=2),
    }


def _certified_results() -> dict:
    return {
        "vote_percentage": 51.2,
        "votes_received": 120345,
        "result_source": "Georgia Secretary of State",
        "result_certified": True,
    }


class TestSourceChecks:
    def test_verified_source_ignores_case_and_spacing(self):
        assert is_verified_source("  emerson   college ", CONFIG)
        assert not is_verified_source("Emerson", CONFIG)
        assert not is_verified_source(None, CONFIG)

    def test_official_marker_is_substring(self):
        assert is_official_result_source("sos.ga.gov results feed", CONFIG)
        assert is_official_result_source("Louisiana SECRETARY OF STATE", CONFIG)
        assert not is_official_result_source("Local News 5", CONFIG)
        assert not is_official_result_source(None, CONFIG)


class TestClassify:
    def test_no_values_is_fair(self):
        report = classify(_candidate(), CONFIG, now=NOW)
        assert report.data_quality == DataQuality.FAIR
        assert not report.has_authentic_polling
        assert not report.has_authentic_votes
        assert report.issues == []

    def test_both_authentic_is_excellent(self):
        report = classify(_candidate(**_live_polling(), **_certified_results()), CONFIG, now=NOW)
        assert report.has_authentic_polling
        assert report.has_authentic_votes
        assert report.data_quality == DataQuality.EXCELLENT

    def test_live_polling_only_is_good(self):
        report = classify(_candidate(**_live_polling()), CONFIG, now=NOW)
        assert report.data_quality == DataQuality.GOOD

    def test_certified_results_only_is_good(self):
        report = classify(_candidate(**_certified_results()), CONFIG, now=NOW)
        assert report.has_authentic_votes
        assert report.data_quality == DataQuality.GOOD

    def test_unsourced_polling_is_poor_and_never_authentic(self):
        report = classify(
            _candidate(polling_support=38.0, last_polling_update=NOW - timedelta(hours=1)),
            CONFIG,
            now=NOW,
        )
        assert report.has_authentic_polling is False
        assert report.has_unsourced_polling is True
        assert report.data_quality == DataQuality.POOR
        assert report.issues == ["polling_unsourced"]

    def test_blank_source_counts_as_unsourced(self):
        report = classify(_candidate(polling_support=38.0, polling_source="   "), CONFIG, now=NOW)
        assert report.has_unsourced_polling
        assert not report.has_authentic_polling

    def test_stale_polling(self):
        report = classify(
            _candidate(
                polling_support=40.0,
                polling_source="FiveThirtyEight",
                last_polling_update=NOW - timedelta(days=8),
            ),
            CONFIG,
            now=NOW,
        )
        assert not report.has_authentic_polling
        assert report.issues == ["polling_stale"]
        assert report.data_quality == DataQuality.POOR

    def test_polling_at_freshness_boundary_is_live(self):
        report = classify(
            _candidate(
                polling_support=40.0,
                polling_source="FiveThirtyEight",
                last_polling_update=NOW - timedelta(days=7),
            ),
            CONFIG,
            now=NOW,
        )
        assert report.has_authentic_polling

    def test_future_dated_polling_is_not_live(self):
        report = classify(
            _candidate(
                polling_support=40.0,
                polling_source="FiveThirtyEight",
                last_polling_update=NOW + timedelta(days=400),
            ),
            CONFIG,
            now=NOW,
        )
        assert not report.has_authentic_polling
        assert report.issues == ["polling_future_dated"]
        assert report.data_quality == DataQuality.POOR

    def test_small_clock_skew_tolerated(self):
        report = classify(
            _candidate(
                polling_support=40.0,
                polling_source="FiveThirtyEight",
                last_polling_update=NOW + timedelta(minutes=2),
            ),
            CONFIG,
            now=NOW,
        )
        assert report.has_authentic_polling
        assert report.issues == []

    def test_unverified_source(self):
        report = classify(
            _candidate(polling_support=40.0, polling_source="My Blog", last_polling_update=NOW),
            CONFIG,
            now=NOW,
        )
        assert report.issues == ["polling_source_unverified"]

    def test_naive_update_time_assumed_utc(self):
        naive = (NOW - timedelta(days=1)).replace(tzinfo=None)
        report = classify(
            _candidate(polling_support=40.0, polling_source="FiveThirtyEight", last_polling_update=naive),
            CONFIG,
            now=NOW,
        )
        assert report.has_authentic_polling

    @pytest.mark.parametrize(
        ("overrides", "issue"),
        [
            ({"result_certified": False}, "results_uncertified"),
            ({"result_source": "Campaign press release"}, "results_unofficial_source"),
            ({"votes_received": None}, "results_incomplete"),
        ],
    )
    def test_result_issues(self, overrides, issue):
        report = classify(_candidate(**{**_certified_results(), **overrides}), CONFIG, now=NOW)
        assert not report.has_authentic_votes
        assert issue in report.issues
        assert report.data_quality == DataQuality.POOR

    def test_authentic_with_unauthenticated_is_fair(self):
        report = classify(
            _candidate(**_certified_results(), polling_support=12.0),
            CONFIG,
            now=NOW,
        )
        assert report.has_authentic_votes
        assert report.data_quality == DataQuality.FAIR

    def test_classifier_does_not_mutate_config(self):
        before = CONFIG.verified_sources
        classify(_candidate(**_live_polling()), CONFIG, now=NOW)
        assert CONFIG.verified_sources is before


class TestCandidateRecord:
    def test_out_of_range_percentage_is_malformed(self):
        with pytest.raises(ValueError):
            _candidate(polling_support=140.0)

    def test_negative_votes_are_malformed(self):
        with pytest.raises(ValueError):
            _candidate(votes_received=-1)
