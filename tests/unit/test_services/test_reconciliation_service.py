"""Tests for the reconciliation service."""

import asyncio
from datetime import date
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from election_steward.lib.reconciler import ReconcilerConfig
from election_steward.lib.steward import StoreUnavailableError
from election_steward.schemas.reconciliation import SourceCandidate
from election_steward.services import record_store
from election_steward.services.reconciliation_service import (
    link_candidates,
    load_canonical_elections,
    match_candidates,
)

CONFIG = ReconcilerConfig()


@pytest.fixture
async def senate_race(seed, make_election, make_candidate):
    election = make_election(external_ids={"fec": "2026-GA-S"})
    await seed(
        election,
        make_candidate(name="Ana Rivera", election_id=election.id, external_ids={"fec": "S6GA00123"}),
        make_election(title="Inactive Race", is_active=False),
        make_election(title="Broken Race", level="galactic"),
    )
    return election


class TestLoadCanonicalElections:
    async def test_only_active_well_formed(self, store, senate_race):
        elections = await load_canonical_elections(store, batch_size=2)

        assert [e.id for e in elections] == [senate_race.id]
        assert elections[0].candidate_names == ("Ana Rivera",)


class TestMatchCandidates:
    async def test_preview_counts(self, store, senate_race):
        sources = [
            SourceCandidate(name="Rivera, Ana", jurisdiction="ga", office="U.S. Senate"),
            SourceCandidate(name="Nobody Known", jurisdiction="WY"),
        ]

        matches, response = await match_candidates(store, sources, CONFIG)

        assert response.total == 2
        assert response.matched == 1
        assert response.unresolved == 1
        assert matches[0].election_id == senate_race.id
        assert response.matches[0].method == "exact_name"
        assert response.matches[1].election_id is None

    async def test_nothing_written(self, store, senate_race):
        source = SourceCandidate(name="Ben Ortiz", jurisdiction="GA", office="U.S. Senate", election_date=date(2026, 11, 3))
        _, response = await match_candidates(store, [source], CONFIG)

        assert response.matches[0].method == "contest"
        assert (await store.linked_candidate_counts())[senate_race.id] == 1


class TestLinkCandidates:
    async def test_links_new_and_counts_existing(self, store, senate_race):
        sources = [
            SourceCandidate(name="Ana Rivera", jurisdiction="GA", office="U.S. Senate"),
            SourceCandidate(
                name="Ben Ortiz",
                jurisdiction="GA",
                office="U.S. Senate",
                election_date=date(2026, 11, 3),
            ),
        ]

        response = await link_candidates(store, sources, CONFIG, asyncio.Lock())

        assert response.matched == 2
        assert response.linked == 1
        assert response.already_linked == 1
        assert (await store.linked_candidate_counts())[senate_race.id] == 2

        run = await store.get_run(response.run_id)
        assert run.status == "completed"
        assert run.trigger == "reconcile"
        assert [r["after"]["name"] for r in run.remediations] == ["Ben Ortiz"]

    async def test_second_link_is_noop(self, store, senate_race):
        sources = [
            SourceCandidate(name="Ben Ortiz", jurisdiction="GA", office="U.S. Senate", election_date=date(2026, 11, 1))
        ]
        lock = asyncio.Lock()

        first = await link_candidates(store, sources, CONFIG, lock)
        second = await link_candidates(store, sources, CONFIG, lock)

        assert first.linked == 1
        assert second.linked == 0
        assert second.already_linked == 1

    async def test_nothing_to_link_records_no_run(self, store, senate_race):
        sources = [SourceCandidate(name="Nobody Known", jurisdiction="WY")]

        response = await link_candidates(store, sources, CONFIG, asyncio.Lock())

        assert response.linked == 0
        assert response.run_id is None
        _, total = await store.list_runs()
        assert total == 0

    async def test_failed_commit_links_nothing(self, store, senate_race):
        sources = [
            SourceCandidate(name="Ben Ortiz", jurisdiction="GA", office="U.S. Senate", election_date=date(2026, 11, 3))
        ]
        finalize = record_store._finalize_run

        def _fail_completion(run, status, fields):
            if status == "completed":
                raise OperationalError("UPDATE audit_runs", {}, ConnectionResetError("connection reset"))
            finalize(run, status, fields)

        with (
            patch("election_steward.services.record_store._finalize_run", _fail_completion),
            pytest.raises(StoreUnavailableError),
        ):
            await link_candidates(store, sources, CONFIG, asyncio.Lock())

        assert (await store.linked_candidate_counts())[senate_race.id] == 1
        runs, _ = await store.list_runs()
        assert runs[0].status == "failed"
        assert runs[0].remediations == []
