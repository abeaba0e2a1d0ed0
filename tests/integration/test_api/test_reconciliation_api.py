"""Integration tests for the reconciliation endpoints."""

import pytest


@pytest.fixture
async def senate_race(seed, make_election, make_candidate):
    election = make_election()
    await seed(election, make_candidate(name="Ana Rivera", election_id=election.id))
    return election


PAYLOAD = {
    "candidates": [
        {"name": "Rivera, Ana", "jurisdiction": "GA", "office": "U.S. Senate"},
        {"name": "Ben Ortiz", "jurisdiction": "GA", "office": "U.S. Senate", "election_date": "2026-11-03"},
        {"name": "Nobody Known", "jurisdiction": "WY"},
    ]
}


class TestMatch:
    async def test_preview(self, client, senate_race):
        resp = await client.post("/api/v1/reconciliation/match", json=PAYLOAD)

        assert resp.status_code == 200
        body = resp.json()
        assert (body["total"], body["matched"], body["unresolved"]) == (3, 2, 1)
        assert [m["method"] for m in body["matches"]] == ["exact_name", "contest", "unresolved"]
        assert body["matches"][0]["election_id"] == str(senate_race.id)
        assert body["matches"][2]["reason"] == "no_match"

    async def test_empty_batch_rejected(self, client):
        resp = await client.post("/api/v1/reconciliation/match", json={"candidates": []})
        assert resp.status_code == 422


class TestLink:
    async def test_requires_token(self, client):
        resp = await client.post("/api/v1/reconciliation/link", json=PAYLOAD)
        assert resp.status_code == 401

    async def test_links_new_candidates(self, client, auth_headers, senate_race, store):
        resp = await client.post("/api/v1/reconciliation/link", json=PAYLOAD, headers=auth_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["linked"] == 1
        assert body["already_linked"] == 1
        assert (await store.linked_candidate_counts())[senate_race.id] == 2
