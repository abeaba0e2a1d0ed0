"""Policy registry: an immutable snapshot of policy state loaded from the store."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from loguru import logger

from election_steward.lib.steward.errors import PolicyArchivedError, PolicyNotFoundError
from election_steward.lib.steward.policies import POLICY_DEFINITIONS, PolicyDefinition
from election_steward.lib.steward.store import RecordStore


@dataclass(frozen=True)
class PolicyState:
    """A catalog policy together with its stored toggle state."""

    definition: PolicyDefinition
    enabled: bool
    auto_fix_enabled: bool
    archived: bool

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def remediation_enabled(self) -> bool:
        return self.definition.auto_fixable and self.auto_fix_enabled


class PolicyRegistry:
    """Holds the current policy snapshot.

    ``reload`` builds a complete new snapshot and swaps it in with a single
    assignment, so a reader sees either the old or the new state in full.
    """

    def __init__(self, definitions: Mapping[str, PolicyDefinition] = POLICY_DEFINITIONS) -> None:
        self._definitions = definitions
        self._snapshot: Mapping[str, PolicyState] = MappingProxyType({})

    @property
    def snapshot(self) -> Mapping[str, PolicyState]:
        return self._snapshot

    async def reload(self, store: RecordStore) -> Mapping[str, PolicyState]:
        """Load toggle state for every catalog policy from the store."""
        states: dict[str, PolicyState] = {}
        for policy in await store.list_policies():
            definition = self._definitions.get(policy.id)
            if definition is None:
                logger.warning("Stored policy {} has no catalog definition; ignoring", policy.id)
                continue
            states[policy.id] = PolicyState(
                definition=definition,
                enabled=policy.enabled,
                auto_fix_enabled=policy.auto_fix_enabled,
                archived=policy.archived,
            )
        snapshot = MappingProxyType(states)
        self._snapshot = snapshot
        return snapshot

    def resolve(self, policy_ids: Iterable[str] | None = None) -> list[PolicyState]:
        """Select the policies an audit run evaluates.

        Args:
            policy_ids: Explicit subset, evaluated even if disabled. ``None``
                selects every enabled, non-archived policy.

        Returns:
            Policy states in catalog order.

        Raises:
            PolicyNotFoundError: If a requested id is unknown.
            PolicyArchivedError: If a requested policy is archived.
        """
        snapshot = self._snapshot
        if policy_ids is None:
            selected = [s for s in snapshot.values() if s.enabled and not s.archived]
        else:
            selected = []
            for policy_id in dict.fromkeys(policy_ids):
                state = snapshot.get(policy_id)
                if state is None:
                    raise PolicyNotFoundError(policy_id)
                if state.archived:
                    raise PolicyArchivedError(policy_id)
                selected.append(state)
        order = {pid: i for i, pid in enumerate(self._definitions)}
        return sorted(selected, key=lambda s: order.get(s.id, len(order)))
