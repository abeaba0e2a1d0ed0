"""Tests for the policy registry snapshot."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from election_steward.lib.steward import (
    POLICY_CATALOG,
    POLICY_CANDIDATE_COVERAGE,
    POLICY_ELECTION_DATE_LAW,
    POLICY_MOCK_DATA,
    POLICY_UNSOURCED_POLLING,
    PolicyArchivedError,
    PolicyNotFoundError,
    PolicyRegistry,
)


def _policy(policy_id: str, *, enabled: bool = True, auto_fix_enabled: bool = False, archived: bool = False):
    policy = MagicMock()
    policy.id = policy_id
    policy.enabled = enabled
    policy.auto_fix_enabled = auto_fix_enabled
    policy.archived = archived
    return policy


def _store(*policies) -> AsyncMock:
    store = AsyncMock()
    store.list_policies.return_value = list(policies)
    return store


@pytest.fixture
async def registry() -> PolicyRegistry:
    registry = PolicyRegistry()
    await registry.reload(
        _store(
            _policy(POLICY_MOCK_DATA, enabled=False),
            _policy(POLICY_UNSOURCED_POLLING, auto_fix_enabled=True),
            _policy(POLICY_ELECTION_DATE_LAW),
            _policy(POLICY_CANDIDATE_COVERAGE, archived=True),
        )
    )
    return registry


class TestReload:
    async def test_unknown_stored_policy_ignored(self):
        registry = PolicyRegistry()
        snapshot = await registry.reload(_store(_policy("retired_policy"), _policy(POLICY_MOCK_DATA)))
        assert set(snapshot) == {POLICY_MOCK_DATA}

    async def test_snapshot_is_read_only(self, registry):
        with pytest.raises(TypeError):
            registry.snapshot["x"] = None  # type: ignore[index]

    async def test_reload_swaps_whole_snapshot(self, registry):
        before = registry.snapshot
        await registry.reload(_store(_policy(POLICY_MOCK_DATA)))
        assert registry.snapshot is not before
        assert POLICY_ELECTION_DATE_LAW in before
        assert set(registry.snapshot) == {POLICY_MOCK_DATA}


class TestResolve:
    def test_default_selects_enabled_and_not_archived(self, registry):
        assert [s.id for s in registry.resolve()] == [POLICY_ELECTION_DATE_LAW, POLICY_UNSOURCED_POLLING]

    def test_catalog_order(self, registry):
        ids = [s.id for s in registry.resolve([POLICY_UNSOURCED_POLLING, POLICY_MOCK_DATA, POLICY_ELECTION_DATE_LAW])]
        catalog = [p.id for p in POLICY_CATALOG]
        assert ids == sorted(ids, key=catalog.index)

    def test_duplicates_collapsed(self, registry):
        assert len(registry.resolve([POLICY_MOCK_DATA, POLICY_MOCK_DATA])) == 1

    def test_unknown_policy(self, registry):
        with pytest.raises(PolicyNotFoundError) as exc_info:
            registry.resolve(["nope"])
        assert exc_info.value.policy_id == "nope"

    def test_archived_policy(self, registry):
        with pytest.raises(PolicyArchivedError):
            registry.resolve([POLICY_CANDIDATE_COVERAGE])

    def test_remediation_enabled_requires_fixable_policy(self, registry):
        states = {s.id: s for s in registry.resolve([POLICY_UNSOURCED_POLLING, POLICY_MOCK_DATA])}
        assert states[POLICY_UNSOURCED_POLLING].remediation_enabled
        assert not states[POLICY_MOCK_DATA].remediation_enabled
