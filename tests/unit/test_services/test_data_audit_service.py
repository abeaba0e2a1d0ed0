"""Tests for the data audit service."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from election_steward.lib.authenticity import AuthenticityConfig
from election_steward.services.data_audit_service import build_percentage_audit, get_candidate_authenticity

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)

VERIFIED = ["FiveThirtyEight", "Emerson College"]
MARKERS = ["secretary of state", ".gov"]
CONFIG = AuthenticityConfig.build(VERIFIED, MARKERS, 7)


@pytest.fixture
def candidates(make_candidate):
    return {
        "excellent": make_candidate(
            name="Ana Rivera",
            polling_support=45.0,
            polling_source="Emerson College",
            last_polling_update=NOW - timedelta(days=1),
            vote_percentage=52.1,
            votes_received=1_204_331,
            result_source="Georgia Secretary of State",
            result_certified=True,
        ),
        "static": make_candidate(name="Ben Ortiz", polling_support=30.0),
        "empty": make_candidate(name="Cal Young"),
        "malformed": make_candidate(name="Dee Park", polling_support=150.0),
    }


class TestGetCandidateAuthenticity:
    async def test_excellent(self, store, seed, candidates):
        await seed(*candidates.values())

        report = await get_candidate_authenticity(store, candidates["excellent"].id, CONFIG, now=NOW)

        assert report.data_quality == "excellent"
        assert report.has_authentic_polling
        assert report.has_authentic_votes
        assert report.issues == []

    async def test_static_polling(self, store, seed, candidates):
        await seed(*candidates.values())

        report = await get_candidate_authenticity(store, candidates["static"].id, CONFIG, now=NOW)

        assert report.data_quality == "poor"
        assert report.has_unsourced_polling
        assert report.issues == ["polling_unsourced"]

    async def test_missing_candidate(self, store):
        assert await get_candidate_authenticity(store, uuid.uuid4(), CONFIG, now=NOW) is None

    async def test_malformed_candidate(self, store, seed, candidates):
        await seed(*candidates.values())

        with pytest.raises(ValueError, match="polling_support"):
            await get_candidate_authenticity(store, candidates["malformed"].id, CONFIG, now=NOW)


class TestBuildPercentageAudit:
    async def test_summary_counts(self, store, seed, candidates):
        await seed(*candidates.values())

        result = await build_percentage_audit(
            store,
            CONFIG,
            verified_sources=VERIFIED,
            official_result_markers=MARKERS,
            batch_size=3,
            now=NOW,
        )

        summary = result.summary
        assert summary.total_candidates == 4
        assert summary.malformed_candidates == 1
        assert summary.candidates_with_polling_data == 2
        assert summary.candidates_with_vote_data == 1
        assert summary.candidates_with_authentic_polling == 1
        assert summary.candidates_with_authentic_votes == 1
        assert summary.data_quality_breakdown.model_dump() == {"excellent": 1, "good": 0, "fair": 1, "poor": 1}
        assert {d.name for d in summary.detailed_report} == {"Ana Rivera", "Ben Ortiz"}
        assert result.timestamp == NOW

    async def test_criteria_reflect_configuration(self, store):
        result = await build_percentage_audit(
            store,
            CONFIG,
            verified_sources=["Quinnipiac University", "Emerson College"],
            official_result_markers=MARKERS,
            now=NOW,
        )

        criteria = result.authenticity_criteria
        assert criteria.verified_sources == ["Emerson College", "Quinnipiac University"]
        assert criteria.official_result_markers == MARKERS
        assert "Must have a polling update within 7 days" in criteria.polling_requirements
        assert result.summary.total_candidates == 0
