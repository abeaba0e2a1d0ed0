"""Integration tests for the steward policy, audit run, and job endpoints."""

import asyncio
import uuid

import pytest

from election_steward.lib.steward import POLICY_CATALOG, POLICY_MOCK_DATA, POLICY_UNSOURCED_POLLING

BASE = "/api/v1/steward"


@pytest.fixture
async def static_polling(seed, make_candidate):
    candidate = make_candidate(name="Ben Ortiz", polling_support=30.0)
    await seed(candidate)
    return candidate


class TestPolicies:
    async def test_list(self, client):
        resp = await client.get(f"{BASE}/policies")
        assert resp.status_code == 200
        items = resp.json()["items"]
        assert len(items) == len(POLICY_CATALOG)
        assert all(p["enabled"] and not p["auto_fix_enabled"] for p in items)

    async def test_toggle_requires_token(self, client):
        resp = await client.patch(f"{BASE}/policies/{POLICY_MOCK_DATA}", json={"enabled": False})
        assert resp.status_code == 401

    async def test_toggle_records_event(self, client, auth_headers):
        resp = await client.patch(
            f"{BASE}/policies/{POLICY_MOCK_DATA}",
            json={"enabled": False, "actor": "alice"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["enabled"] is False

        events = (await client.get(f"{BASE}/policies/{POLICY_MOCK_DATA}/events")).json()
        assert len(events) == 1
        assert events[0]["field"] == "enabled"
        assert events[0]["old_value"] is True
        assert events[0]["new_value"] is False
        assert events[0]["actor"] == "alice"

    async def test_auto_fix_on_non_fixable_policy(self, client, auth_headers):
        resp = await client.patch(
            f"{BASE}/policies/{POLICY_MOCK_DATA}/auto-fix",
            json={"enabled": True},
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert "does not support auto-fix" in resp.json()["detail"]

    async def test_archived_policy_is_frozen(self, client, auth_headers):
        resp = await client.post(f"{BASE}/policies/{POLICY_MOCK_DATA}/archive?actor=bob", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["archived"] is True

        resp = await client.patch(
            f"{BASE}/policies/{POLICY_MOCK_DATA}",
            json={"enabled": True},
            headers=auth_headers,
        )
        assert resp.status_code == 409

        listed = (await client.get(f"{BASE}/policies", params={"include_archived": False})).json()["items"]
        assert POLICY_MOCK_DATA not in {p["id"] for p in listed}

    async def test_unknown_policy(self, client, auth_headers):
        resp = await client.patch(f"{BASE}/policies/nope", json={"enabled": False}, headers=auth_headers)
        assert resp.status_code == 404
        assert (await client.get(f"{BASE}/policies/nope/events")).status_code == 404


class TestAudits:
    async def test_synchronous_run(self, client, auth_headers, static_polling, store):
        resp = await client.post(
            f"{BASE}/audits",
            json={"policies": [POLICY_UNSOURCED_POLLING]},
            headers=auth_headers,
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "completed"
        assert body["trigger"] == "api"
        assert body["finding_counts"] == {POLICY_UNSOURCED_POLLING: 1}
        assert body["remediations"] == []
        assert (await store.get_candidate(static_polling.id)).polling_support == 30.0

        fetched = await client.get(f"{BASE}/audits/{body['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["findings"][POLICY_UNSOURCED_POLLING][0]["record_id"] == str(static_polling.id)

    async def test_stage_then_apply(self, client, auth_headers, static_polling, store):
        resp = await client.patch(
            f"{BASE}/policies/{POLICY_UNSOURCED_POLLING}/auto-fix",
            json={"enabled": True},
            headers=auth_headers,
        )
        assert resp.status_code == 200

        staged = (
            await client.post(
                f"{BASE}/audits",
                json={"policies": [POLICY_UNSOURCED_POLLING], "stage_remediations": True},
                headers=auth_headers,
            )
        ).json()
        assert staged["dry_run"] is True
        assert len(staged["staged_remediations"]) == 1
        assert (await store.get_candidate(static_polling.id)).polling_support == 30.0

        applied = await client.post(f"{BASE}/audits/{staged['id']}/apply", headers=auth_headers)
        assert applied.status_code == 200
        assert applied.json()["source_run_id"] == staged["id"]
        assert len(applied.json()["remediations"]) == 1
        assert (await store.get_candidate(static_polling.id)).polling_support is None

        again = await client.post(f"{BASE}/audits/{staged['id']}/apply", headers=auth_headers)
        assert again.status_code == 409

    async def test_unknown_policy_creates_no_run(self, client, auth_headers):
        resp = await client.post(f"{BASE}/audits", json={"policies": ["nope"]}, headers=auth_headers)
        assert resp.status_code == 404
        assert (await client.get(f"{BASE}/audits")).json()["pagination"]["total"] == 0

    async def test_list_with_status_filter(self, client, auth_headers):
        for _ in range(3):
            await client.post(f"{BASE}/audits", json={"dry_run": True}, headers=auth_headers)

        resp = await client.get(f"{BASE}/audits", params={"status": "completed", "page_size": 2})
        body = resp.json()
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["total_pages"] == 2
        assert len(body["items"]) == 2

        failed = await client.get(f"{BASE}/audits", params={"status": "failed"})
        assert failed.json()["items"] == []

    async def test_unknown_run(self, client, auth_headers):
        missing = uuid.uuid4()
        assert (await client.get(f"{BASE}/audits/{missing}")).status_code == 404
        assert (await client.post(f"{BASE}/audits/{missing}/apply", headers=auth_headers)).status_code == 404

    async def test_trigger_requires_token(self, client):
        assert (await client.post(f"{BASE}/audits", json={})).status_code == 401


class TestBackgroundJobs:
    async def test_background_run_completes(self, client, auth_headers):
        resp = await client.post(f"{BASE}/audits", json={"background": True}, headers=auth_headers)
        assert resp.status_code == 202
        job_id = resp.json()["job_id"]

        body = {}
        for _ in range(100):
            body = (await client.get(f"{BASE}/jobs/{job_id}")).json()
            if body["status"] in ("completed", "failed"):
                break
            await asyncio.sleep(0.02)

        assert body["status"] == "completed"
        assert body["run"]["status"] == "completed"
        assert body["run"]["trigger"] == "api"

    async def test_background_rejects_unknown_policy_up_front(self, client, auth_headers):
        resp = await client.post(
            f"{BASE}/audits",
            json={"background": True, "policies": ["nope"]},
            headers=auth_headers,
        )
        assert resp.status_code == 404

    async def test_unknown_job(self, client, auth_headers):
        assert (await client.get(f"{BASE}/jobs/nope")).status_code == 404
        assert (await client.delete(f"{BASE}/jobs/nope", headers=auth_headers)).status_code == 404
