"""SQL-backed record store.

Implements the steward ``RecordStore`` over the async SQLAlchemy session
factory. Each operation opens its own session so long scans never hold a
transaction open across pages. Connectivity failures surface as
``StoreUnavailableError``.
"""

import uuid
from collections.abc import AsyncIterator, Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from election_steward.lib.reconciler import normalize_name
from election_steward.lib.steward.errors import (
    AuditRunImmutableError,
    AuditRunNotFoundError,
    PolicyArchivedError,
    PolicyNotFoundError,
    StoreUnavailableError,
)
from election_steward.lib.steward.policies import PolicyDefinition, RemediationKind
from election_steward.lib.steward.store import RecordStore
from election_steward.models.audit_run import AuditRun
from election_steward.models.candidate import Candidate
from election_steward.models.election import Election
from election_steward.models.policy import Policy, PolicyEvent

TERMINAL_STATUSES = frozenset({"completed", "failed"})

POLICY_FLAGS = frozenset({"enabled", "auto_fix_enabled", "archived"})

_RUN_RESULT_FIELDS = frozenset(
    {
        "finding_counts",
        "findings",
        "skipped",
        "records_scanned",
        "remediations",
        "staged_remediations",
        "error",
    }
)


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate database connectivity failures into StoreUnavailableError."""
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        raise StoreUnavailableError(str(e.orig or e).splitlines()[0], operation) from e
    except DBAPIError as e:
        if e.connection_invalidated:
            raise StoreUnavailableError("connection invalidated", operation) from e
        raise
    except (OSError, TimeoutError) as e:
        raise StoreUnavailableError(str(e) or type(e).__name__, operation) from e


def _has_unsourced_polling(candidate: Candidate) -> bool:
    return candidate.polling_support is not None and not (candidate.polling_source or "").strip()


def _polling_snapshot(candidate: Candidate) -> dict[str, Any]:
    return {
        "polling_support": candidate.polling_support,
        "polling_source": candidate.polling_source,
        "last_polling_update": (
            candidate.last_polling_update.isoformat() if candidate.last_polling_update else None
        ),
        "polling_trend": candidate.polling_trend,
    }


def _check_result_fields(fields: dict[str, Any]) -> None:
    unknown = set(fields) - _RUN_RESULT_FIELDS
    if unknown:
        msg = f"Unknown audit run fields: {', '.join(sorted(unknown))}"
        raise ValueError(msg)


async def _load_open_run(session: AsyncSession, run_id: uuid.UUID) -> AuditRun:
    """Load a run for update, refusing terminal runs."""
    run = await session.get(AuditRun, run_id, with_for_update=True)
    if run is None:
        raise AuditRunNotFoundError(run_id)
    if run.status in TERMINAL_STATUSES:
        raise AuditRunImmutableError(run_id, run.status)
    return run


def _finalize_run(run: AuditRun, status: str, fields: dict[str, Any]) -> None:
    """Write the terminal state onto an open run."""
    now = datetime.now(UTC)
    run.status = status
    for name, value in fields.items():
        setattr(run, name, value)
    if run.started_at is None:
        run.started_at = now
    run.completed_at = now


class SqlRecordStore(RecordStore):
    """Record store backed by the application database.

    Args:
        session_factory: Async session factory from ``core.database``.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # --- Elections and candidates ---

    async def iter_elections(self, batch_size: int) -> AsyncIterator[list[Election]]:
        last_id: uuid.UUID | None = None
        while True:
            with store_errors("iter_elections"):
                async with self._session_factory() as session:
                    query = select(Election).order_by(Election.id).limit(batch_size)
                    if last_id is not None:
                        query = query.where(Election.id > last_id)
                    rows = list((await session.execute(query)).scalars().all())
            if not rows:
                return
            yield rows
            if len(rows) < batch_size:
                return
            last_id = rows[-1].id

    async def iter_candidates(self, batch_size: int) -> AsyncIterator[list[Candidate]]:
        last_id: uuid.UUID | None = None
        while True:
            with store_errors("iter_candidates"):
                async with self._session_factory() as session:
                    query = select(Candidate).order_by(Candidate.id).limit(batch_size)
                    if last_id is not None:
                        query = query.where(Candidate.id > last_id)
                    rows = list((await session.execute(query)).scalars().all())
            if not rows:
                return
            yield rows
            if len(rows) < batch_size:
                return
            last_id = rows[-1].id

    async def get_election(self, election_id: uuid.UUID) -> Election | None:
        with store_errors("get_election"):
            async with self._session_factory() as session:
                return await session.get(Election, election_id)

    async def get_candidate(self, candidate_id: uuid.UUID) -> Candidate | None:
        with store_errors("get_candidate"):
            async with self._session_factory() as session:
                return await session.get(Candidate, candidate_id)

    async def linked_candidate_counts(self) -> dict[uuid.UUID, int]:
        with store_errors("linked_candidate_counts"):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Candidate.election_id, func.count(Candidate.id))
                    .where(Candidate.election_id.is_not(None))
                    .group_by(Candidate.election_id)
                )
                return {election_id: count for election_id, count in result.all()}

    async def _apply_actions(self, session: AsyncSession, actions: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
        applied: list[dict[str, Any]] = []
        for action in actions:
            kind = action["action"]
            if kind == RemediationKind.CLEAR_POLLING:
                result = await self._clear_polling(session, action)
            elif kind == RemediationKind.LINK_CANDIDATE:
                result = await self._link_candidate(session, action)
            else:
                msg = f"Unknown remediation action: {kind}"
                raise ValueError(msg)
            if result is None:
                logger.debug("Remediation {} on {} no longer applies", kind, action["record_id"])
            else:
                applied.append(result)
        return applied

    async def _clear_polling(self, session: AsyncSession, action: dict[str, Any]) -> dict[str, Any] | None:
        candidate = await session.get(Candidate, uuid.UUID(action["record_id"]), with_for_update=True)
        if candidate is None or not _has_unsourced_polling(candidate):
            return None
        before = _polling_snapshot(candidate)
        candidate.polling_support = None
        candidate.polling_source = None
        candidate.last_polling_update = None
        candidate.polling_trend = None
        return {**action, "before": before, "after": _polling_snapshot(candidate)}

    async def _link_candidate(self, session: AsyncSession, action: dict[str, Any]) -> dict[str, Any] | None:
        election_id = uuid.UUID(action["record_id"])
        election = await session.get(Election, election_id)
        after = dict(action.get("after") or {})
        if election is None or not after.get("name"):
            return None
        existing = await session.execute(select(Candidate.name).where(Candidate.election_id == election_id))
        key = normalize_name(after["name"])
        if key in {normalize_name(name) for name in existing.scalars().all()}:
            return None
        candidate = Candidate(
            id=uuid.uuid4(),
            name=after["name"],
            party=after.get("party"),
            election_id=election_id,
            external_ids=dict(after.get("external_ids") or {}),
        )
        session.add(candidate)
        return {**action, "before": None, "after": {**after, "candidate_id": str(candidate.id)}}

    # --- Policies ---

    async def ensure_policies(self, definitions: Iterable[PolicyDefinition]) -> int:
        inserted = 0
        with store_errors("ensure_policies"):
            async with self._session_factory() as session, session.begin():
                existing = {p.id: p for p in (await session.execute(select(Policy))).scalars().all()}
                for definition in definitions:
                    policy = existing.get(definition.id)
                    if policy is None:
                        session.add(
                            Policy(
                                id=definition.id,
                                label=definition.label,
                                category=definition.category,
                                description=definition.description,
                                severity=definition.severity,
                                enabled=True,
                                auto_fixable=definition.auto_fixable,
                                auto_fix_enabled=False,
                                archived=False,
                            )
                        )
                        inserted += 1
                        continue
                    # Catalog owns the static fields; toggle state is left alone
                    policy.label = definition.label
                    policy.category = definition.category
                    policy.description = definition.description
                    policy.severity = definition.severity
                    policy.auto_fixable = definition.auto_fixable
                    if not definition.auto_fixable:
                        policy.auto_fix_enabled = False
        return inserted

    async def list_policies(self, *, include_archived: bool = True) -> list[Policy]:
        with store_errors("list_policies"):
            async with self._session_factory() as session:
                query = select(Policy).order_by(Policy.id)
                if not include_archived:
                    query = query.where(Policy.archived.is_(False))
                return list((await session.execute(query)).scalars().all())

    async def get_policy(self, policy_id: str) -> Policy | None:
        with store_errors("get_policy"):
            async with self._session_factory() as session:
                return await session.get(Policy, policy_id)

    async def set_policy_flag(self, policy_id: str, field: str, value: bool, actor: str | None = None) -> Policy:
        if field not in POLICY_FLAGS:
            msg = f"Unknown policy flag: {field}"
            raise ValueError(msg)
        with store_errors("set_policy_flag"):
            async with self._session_factory() as session:
                policy = await session.get(Policy, policy_id, with_for_update=True)
                if policy is None:
                    raise PolicyNotFoundError(policy_id)
                if policy.archived:
                    raise PolicyArchivedError(policy_id)
                if field == "auto_fix_enabled" and value and not policy.auto_fixable:
                    msg = f"Policy {policy_id} does not support auto-fix"
                    raise ValueError(msg)

                old_value = bool(getattr(policy, field))
                if old_value == value:
                    return policy
                setattr(policy, field, value)
                session.add(
                    PolicyEvent(
                        policy_id=policy_id,
                        field=field,
                        old_value=old_value,
                        new_value=value,
                        actor=actor,
                        occurred_at=datetime.now(UTC),
                    )
                )
                await session.commit()
                await session.refresh(policy)
                return policy

    async def list_policy_events(self, policy_id: str) -> list[PolicyEvent]:
        with store_errors("list_policy_events"):
            async with self._session_factory() as session:
                if await session.get(Policy, policy_id) is None:
                    raise PolicyNotFoundError(policy_id)
                result = await session.execute(
                    select(PolicyEvent)
                    .where(PolicyEvent.policy_id == policy_id)
                    .order_by(PolicyEvent.occurred_at, PolicyEvent.id)
                )
                return list(result.scalars().all())

    # --- Audit runs ---

    async def create_run(
        self,
        *,
        policies: list[str],
        trigger: str,
        dry_run: bool,
        source_run_id: uuid.UUID | None = None,
    ) -> AuditRun:
        with store_errors("create_run"):
            async with self._session_factory() as session:
                run = AuditRun(
                    status="pending",
                    trigger=trigger,
                    dry_run=dry_run,
                    policies=list(policies),
                    finding_counts={},
                    findings={},
                    skipped={},
                    records_scanned={},
                    remediations=[],
                    source_run_id=source_run_id,
                    created_at=datetime.now(UTC),
                )
                session.add(run)
                await session.commit()
                await session.refresh(run)
                return run

    async def start_run(self, run_id: uuid.UUID) -> AuditRun:
        with store_errors("start_run"):
            async with self._session_factory() as session:
                run = await session.get(AuditRun, run_id, with_for_update=True)
                if run is None:
                    raise AuditRunNotFoundError(run_id)
                if run.status != "pending":
                    raise AuditRunImmutableError(run_id, run.status)
                run.status = "running"
                run.started_at = datetime.now(UTC)
                await session.commit()
                await session.refresh(run)
                return run

    async def finish_run(self, run_id: uuid.UUID, *, status: str, **fields: Any) -> AuditRun:
        if status not in TERMINAL_STATUSES:
            msg = f"Not a terminal status: {status}"
            raise ValueError(msg)
        _check_result_fields(fields)
        with store_errors("finish_run"):
            async with self._session_factory() as session:
                run = await _load_open_run(session, run_id)
                _finalize_run(run, status, fields)
                await session.commit()
                await session.refresh(run)
                return run

    async def commit_run(self, run_id: uuid.UUID, actions: Iterable[dict[str, Any]], **fields: Any) -> AuditRun:
        _check_result_fields(fields)
        if "remediations" in fields:
            msg = "remediations are computed from the applied actions"
            raise ValueError(msg)
        with store_errors("commit_run"):
            async with self._session_factory() as session:
                async with session.begin():
                    run = await _load_open_run(session, run_id)
                    applied = await self._apply_actions(session, actions)
                    await session.flush()
                    _finalize_run(run, "completed", {**fields, "remediations": applied})
                await session.refresh(run)
                return run

    async def get_run(self, run_id: uuid.UUID) -> AuditRun | None:
        with store_errors("get_run"):
            async with self._session_factory() as session:
                return await session.get(AuditRun, run_id)

    async def get_applied_run(self, source_run_id: uuid.UUID) -> AuditRun | None:
        with store_errors("get_applied_run"):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(AuditRun)
                    .where(AuditRun.source_run_id == source_run_id, AuditRun.status == "completed")
                    .limit(1)
                )
                return result.scalar_one_or_none()

    async def list_runs(
        self,
        *,
        offset: int = 0,
        limit: int = 20,
        status: str | None = None,
    ) -> tuple[list[AuditRun], int]:
        with store_errors("list_runs"):
            async with self._session_factory() as session:
                query = select(AuditRun)
                count_query = select(func.count(AuditRun.id))
                if status is not None:
                    query = query.where(AuditRun.status == status)
                    count_query = count_query.where(AuditRun.status == status)

                total = (await session.execute(count_query)).scalar_one()
                query = query.order_by(AuditRun.created_at.desc(), AuditRun.id).offset(offset).limit(limit)
                runs = list((await session.execute(query)).scalars().all())
                return runs, total
