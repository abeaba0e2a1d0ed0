"""Steward engine exceptions.

Per-record problems never surface here: rule violations are findings and
malformed records are skips. These exceptions cover infrastructure failure
and misuse of the policy and audit-run surfaces.
"""

import uuid


class StewardError(Exception):
    """Base class for steward engine errors."""


class StoreUnavailableError(StewardError):
    """Raised when the record store cannot be reached.

    Aborts an in-progress audit run, which is persisted as ``failed`` when
    the store allows it. A fresh run may be retried.
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        self.operation = operation
        super().__init__(f"{operation}: {message}" if operation else message)


class PolicyNotFoundError(StewardError, LookupError):
    """Raised when a policy id is not in the store."""

    def __init__(self, policy_id: str) -> None:
        self.policy_id = policy_id
        super().__init__(f"Policy not found: {policy_id}")


class PolicyArchivedError(StewardError):
    """Raised when toggling a policy that has been archived."""

    def __init__(self, policy_id: str) -> None:
        self.policy_id = policy_id
        super().__init__(f"Policy is archived: {policy_id}")


class AuditRunNotFoundError(StewardError, LookupError):
    """Raised when an audit run id is not in the store."""

    def __init__(self, run_id: uuid.UUID) -> None:
        self.run_id = run_id
        super().__init__(f"Audit run not found: {run_id}")


class AuditRunImmutableError(StewardError):
    """Raised when finishing an audit run that is already terminal."""

    def __init__(self, run_id: uuid.UUID, status: str) -> None:
        self.run_id = run_id
        self.status = status
        super().__init__(f"Audit run {run_id} is already {status}")


class NoStagedRemediationError(StewardError):
    """Raised when applying a run that has no staged remediations to apply."""

    def __init__(self, run_id: uuid.UUID, reason: str) -> None:
        self.run_id = run_id
        self.reason = reason
        super().__init__(f"Audit run {run_id} cannot be applied: {reason}")
