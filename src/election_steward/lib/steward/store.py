"""Record store interface consumed by the audit orchestrator.

The orchestrator never talks to a database directly. Implementations
translate their infrastructure failures into ``StoreUnavailableError``.
"""

import uuid
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable
from typing import Any

from election_steward.lib.steward.policies import PolicyDefinition
from election_steward.models.audit_run import AuditRun
from election_steward.models.candidate import Candidate
from election_steward.models.election import Election
from election_steward.models.policy import Policy, PolicyEvent


class RecordStore(ABC):
    """Abstract record store. The SQL implementation lives in services."""

    # --- Elections and candidates ---

    @abstractmethod
    def iter_elections(self, batch_size: int) -> AsyncIterator[list[Election]]:
        """Yield all elections in id order, one page at a time."""

    @abstractmethod
    def iter_candidates(self, batch_size: int) -> AsyncIterator[list[Candidate]]:
        """Yield all candidates in id order, one page at a time."""

    @abstractmethod
    async def get_election(self, election_id: uuid.UUID) -> Election | None:
        """Fetch one election by id."""

    @abstractmethod
    async def get_candidate(self, candidate_id: uuid.UUID) -> Candidate | None:
        """Fetch one candidate by id."""

    @abstractmethod
    async def linked_candidate_counts(self) -> dict[uuid.UUID, int]:
        """Number of linked candidates per election id (elections with none are absent)."""

    # --- Policies ---

    @abstractmethod
    async def ensure_policies(self, definitions: Iterable[PolicyDefinition]) -> int:
        """Insert catalog policies missing from the store. Returns the number inserted."""

    @abstractmethod
    async def list_policies(self, *, include_archived: bool = True) -> list[Policy]:
        """All stored policies ordered by id."""

    @abstractmethod
    async def get_policy(self, policy_id: str) -> Policy | None:
        """Fetch one policy by id."""

    @abstractmethod
    async def set_policy_flag(self, policy_id: str, field: str, value: bool, actor: str | None = None) -> Policy:
        """Set one boolean flag on a policy and append a toggle event.

        Raises:
            PolicyNotFoundError: If the policy does not exist.
            PolicyArchivedError: If the policy is archived.
            ValueError: If the flag cannot be set to ``value``.
        """

    @abstractmethod
    async def list_policy_events(self, policy_id: str) -> list[PolicyEvent]:
        """Toggle history for one policy, oldest first."""

    # --- Audit runs ---

    @abstractmethod
    async def create_run(
        self,
        *,
        policies: list[str],
        trigger: str,
        dry_run: bool,
        source_run_id: uuid.UUID | None = None,
    ) -> AuditRun:
        """Persist a new run in ``pending`` status."""

    @abstractmethod
    async def start_run(self, run_id: uuid.UUID) -> AuditRun:
        """Move a pending run to ``running``."""

    @abstractmethod
    async def finish_run(self, run_id: uuid.UUID, *, status: str, **fields: Any) -> AuditRun:
        """Persist the terminal state of a run.

        Raises:
            AuditRunNotFoundError: If the run does not exist.
            AuditRunImmutableError: If the run is already terminal.
        """

    @abstractmethod
    async def commit_run(self, run_id: uuid.UUID, actions: Iterable[dict[str, Any]], **fields: Any) -> AuditRun:
        """Apply remediation actions and complete the run in one transaction.

        Each action is re-checked against the record's current state; actions
        that no longer apply are dropped. The applied actions, with before/after
        diffs read at commit time, become the run's ``remediations``. Either
        every write and the completed run row persist together, or nothing does.

        Args:
            run_id: The running audit run to complete.
            actions: Planned actions (``RemediationAction`` dumps).
            **fields: Other result fields of the run.

        Raises:
            AuditRunNotFoundError: If the run does not exist.
            AuditRunImmutableError: If the run is already terminal.
        """

    @abstractmethod
    async def get_run(self, run_id: uuid.UUID) -> AuditRun | None:
        """Fetch one run by id."""

    @abstractmethod
    async def get_applied_run(self, source_run_id: uuid.UUID) -> AuditRun | None:
        """The completed run that applied ``source_run_id``'s staged remediations, if any."""

    @abstractmethod
    async def list_runs(
        self,
        *,
        offset: int = 0,
        limit: int = 20,
        status: str | None = None,
    ) -> tuple[list[AuditRun], int]:
        """Runs ordered newest first, with the total count."""
