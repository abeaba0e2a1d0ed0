"""Unit tests for the record schemas parsed at the store edge."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from election_steward.schemas.candidate import CandidateRecord
from election_steward.schemas.election import ElectionRecord
from election_steward.schemas.reconciliation import ReconcileRequest, SourceCandidate


class TestElectionRecord:
    def test_from_model_normalizes(self, make_election) -> None:
        row = make_election(
            level=" Federal ",
            election_type="SPECIAL",
            jurisdiction="  ",
            provenance_type="governor_proclamation",
            provenance_url=None,
        )

        record = ElectionRecord.from_model(row)

        assert record.level == "federal"
        assert record.election_type == "special"
        assert record.jurisdiction is None
        assert record.provenance.type == "governor_proclamation"
        assert record.provenance.url == ""
        assert record.offices == ("U.S. Senate",)

    def test_no_provenance(self, make_election) -> None:
        assert ElectionRecord.from_model(make_election()).provenance is None

    @pytest.mark.parametrize(
        "overrides",
        [{"level": "galactic"}, {"title": ""}, {"election_type": ""}],
    )
    def test_malformed_rows_raise(self, make_election, overrides) -> None:
        with pytest.raises(ValidationError):
            ElectionRecord.from_model(make_election(**overrides))

    def test_frozen(self, make_election) -> None:
        record = ElectionRecord.from_model(make_election())
        with pytest.raises(ValidationError):
            record.title = "Changed"


class TestCandidateRecord:
    def test_blank_sources_are_null(self, make_candidate) -> None:
        record = CandidateRecord.from_model(make_candidate(polling_source="  ", result_source=""))
        assert record.polling_source is None
        assert record.result_source is None

    def test_naive_polling_update_is_utc(self, make_candidate) -> None:
        record = CandidateRecord.from_model(make_candidate(last_polling_update=datetime(2026, 10, 1, 9, 30)))
        assert record.last_polling_update == datetime(2026, 10, 1, 9, 30, tzinfo=UTC)

    @pytest.mark.parametrize(
        "overrides",
        [{"polling_support": 100.5}, {"vote_percentage": -1.0}, {"votes_received": -3}, {"name": ""}],
    )
    def test_out_of_range_values_raise(self, make_candidate, overrides) -> None:
        with pytest.raises(ValidationError):
            CandidateRecord.from_model(make_candidate(**overrides))

    def test_result_values(self, make_candidate) -> None:
        assert not CandidateRecord.from_model(make_candidate()).has_result_values
        assert CandidateRecord.from_model(make_candidate(votes_received=10)).has_result_values


class TestSourceCandidate:
    def test_jurisdiction_normalized(self) -> None:
        assert SourceCandidate(name="Ana Rivera", jurisdiction=" ga ").jurisdiction == "GA"
        assert SourceCandidate(name="Ana Rivera", jurisdiction="").jurisdiction is None

    def test_request_requires_candidates(self) -> None:
        with pytest.raises(ValidationError):
            ReconcileRequest(candidates=[])

    def test_request_parses_dates(self) -> None:
        request = ReconcileRequest.model_validate(
            {"candidates": [{"name": "Ben Ortiz", "election_date": "2026-11-03", "external_ids": {"fec": "H6"}}]}
        )
        assert request.candidates[0].election_date.isoformat() == "2026-11-03"
        assert request.candidates[0].external_ids == {"fec": "H6"}
