"""Audit orchestrator (data steward).

Runs the enabled policies over every election and candidate in the record
store, records findings, and applies bounded remediations. Each run moves
``pending -> running -> completed | failed`` and is persisted exactly once
in its terminal state.

Concurrency:
    Scanning is read-only and may overlap with other runs. The remediation
    commit is serialized by a single ``asyncio.Lock`` shared by every
    orchestrator that writes to the same store. Dry runs never take it.
    Cancelling a run before the commit leaves persisted records untouched;
    once the commit has started it runs to completion.
"""

import asyncio
import uuid
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

from loguru import logger
from pydantic import ValidationError

from election_steward.core.logging import audit_context
from election_steward.lib.authenticity import AuthenticityConfig, classify, is_unsourced_polling
from election_steward.lib.reconciler import (
    CanonicalElection,
    ReconcilerConfig,
    coverage_window,
    find_coverage_gaps,
    normalize_name,
    reconcile,
)
from election_steward.lib.rule_validator import RuleSet, validate
from election_steward.lib.steward.errors import (
    AuditRunImmutableError,
    AuditRunNotFoundError,
    NoStagedRemediationError,
    StoreUnavailableError,
)
from election_steward.lib.steward.policies import POLICY_CATALOG, PolicyKind, RemediationKind
from election_steward.lib.steward.registry import PolicyRegistry, PolicyState
from election_steward.lib.steward.store import RecordStore
from election_steward.models.audit_run import AuditRun
from election_steward.models.policy import Policy
from election_steward.schemas.audit import AuditRunResponse, RemediationAction
from election_steward.schemas.candidate import CandidateRecord
from election_steward.schemas.election import ElectionRecord
from election_steward.schemas.reconciliation import SourceCandidate

POLLING_FIELDS = ("polling_support", "polling_source", "last_polling_update", "polling_trend")

_MALFORMED_REASON_SAMPLE = 20


@dataclass(frozen=True)
class StewardConfig:
    """Everything the engine needs, fixed at construction time."""

    rule_set: RuleSet = field(default_factory=RuleSet)
    authenticity: AuthenticityConfig = field(default_factory=AuthenticityConfig)
    reconciler: ReconcilerConfig = field(default_factory=ReconcilerConfig)
    batch_size: int = 500
    finding_sample_size: int = 50
    coverage_window_days: int = 60
    coverage_lookback_days: int = 0

    @classmethod
    def from_settings(cls, settings: Any) -> "StewardConfig":
        """Build a config from application ``Settings``."""
        return cls(
            rule_set=RuleSet(
                saturday_only=frozenset(settings.saturday_only_jurisdiction_list),
                strict_federal_tuesday=settings.strict_federal_tuesday,
                max_year_drift=settings.max_election_year_drift,
            ),
            authenticity=AuthenticityConfig.build(
                settings.verified_polling_source_list,
                settings.official_result_marker_list,
                settings.polling_freshness_days,
            ),
            reconciler=ReconcilerConfig(
                fuzzy_threshold=settings.reconcile_fuzzy_threshold,
                contest_date_tolerance_days=settings.reconcile_contest_date_tolerance_days,
            ),
            batch_size=settings.audit_batch_size,
            finding_sample_size=settings.audit_finding_sample_size,
            coverage_window_days=settings.coverage_window_days,
            coverage_lookback_days=settings.coverage_lookback_days,
        )


@dataclass
class _ScanState:
    """Findings accumulated while a run scans the store."""

    policies: list[PolicyState]
    sample_size: int
    finding_counts: dict[str, int] = field(default_factory=dict)
    findings: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    malformed: dict[str, int] = field(default_factory=lambda: {"election": 0, "candidate": 0})
    malformed_reasons: list[str] = field(default_factory=list)
    scanned: dict[str, int] = field(default_factory=lambda: {"elections": 0, "candidates": 0})
    planned: list[dict[str, Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        for policy in self.policies:
            self.finding_counts[policy.id] = 0
            self.findings[policy.id] = []

    def add_finding(self, policy_id: str, detail: dict[str, Any]) -> None:
        self.finding_counts[policy_id] += 1
        if len(self.findings[policy_id]) < self.sample_size:
            self.findings[policy_id].append(detail)

    def add_malformed(self, record_type: str, record_id: Any, exc: ValidationError) -> None:
        self.malformed[record_type] += 1
        if len(self.malformed_reasons) < _MALFORMED_REASON_SAMPLE:
            fields = ",".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
            self.malformed_reasons.append(f"{record_type} {record_id}: {fields}")

    def skipped(self) -> dict[str, Any]:
        return {"malformed": dict(self.malformed), "reasons": list(self.malformed_reasons)}

    def result_fields(self) -> dict[str, Any]:
        return {
            "finding_counts": dict(self.finding_counts),
            "findings": {k: list(v) for k, v in self.findings.items()},
            "skipped": self.skipped(),
            "records_scanned": dict(self.scanned),
        }


class AuditOrchestrator:
    """Runs audits and mutates policy state against a record store.

    Args:
        store: Record store implementation.
        config: Engine configuration.
        lock: Write lock shared by all orchestrators over the same store.
        registry: Policy registry (default: a fresh one over the code catalog).
    """

    def __init__(
        self,
        store: RecordStore,
        config: StewardConfig | None = None,
        lock: asyncio.Lock | None = None,
        registry: PolicyRegistry | None = None,
    ) -> None:
        self.store = store
        self.config = config or StewardConfig()
        self.lock = lock or asyncio.Lock()
        self.registry = registry or PolicyRegistry()

    # --- Policy surface ---

    async def seed_policies(self) -> int:
        """Insert catalog policies missing from the store and load the registry."""
        inserted = await self.store.ensure_policies(POLICY_CATALOG)
        await self.registry.reload(self.store)
        if inserted:
            logger.info("Seeded {} steward policies", inserted)
        return inserted

    async def toggle_policy(self, policy_id: str, enabled: bool, actor: str | None = None) -> Policy:
        """Enable or disable a policy. Visible to the next run."""
        policy = await self.store.set_policy_flag(policy_id, "enabled", enabled, actor)
        await self.registry.reload(self.store)
        logger.info("Policy {} enabled={} (actor={})", policy_id, enabled, actor)
        return policy

    async def toggle_auto_fix(self, policy_id: str, enabled: bool, actor: str | None = None) -> Policy:
        """Enable or disable auto-fix for an auto-fixable policy."""
        policy = await self.store.set_policy_flag(policy_id, "auto_fix_enabled", enabled, actor)
        await self.registry.reload(self.store)
        logger.info("Policy {} auto_fix_enabled={} (actor={})", policy_id, enabled, actor)
        return policy

    async def archive_policy(self, policy_id: str, actor: str | None = None) -> Policy:
        """Archive a policy permanently; it stops being evaluated."""
        policy = await self.store.set_policy_flag(policy_id, "archived", True, actor)
        await self.registry.reload(self.store)
        logger.info("Policy {} archived (actor={})", policy_id, actor)
        return policy

    # --- Audit runs ---

    async def run_audit(
        self,
        policies: Iterable[str] | None = None,
        *,
        dry_run: bool = False,
        stage_remediations: bool = False,
        force_remediation: bool = False,
        trigger: str = "manual",
        source_candidates: Iterable[SourceCandidate] | None = None,
        now: datetime | None = None,
    ) -> AuditRunResponse:
        """Run the selected policies over the full record set.

        Args:
            policies: Policy ids to evaluate (default: all enabled policies).
            dry_run: Evaluate only; never write remediations.
            stage_remediations: Record planned remediations on the run for a
                later ``apply_staged_remediations`` call. Implies ``dry_run``.
            force_remediation: Apply remediation for every auto-fixable policy
                in the run even if its auto-fix toggle is off.
            trigger: What started the run (manual, schedule, api, cli).
            source_candidates: Optional source batch used to close coverage gaps.
            now: Evaluation time (default: current UTC time).

        Returns:
            The persisted run, ``completed`` or ``failed``.

        Raises:
            PolicyNotFoundError: If ``policies`` names an unknown policy. No
                run is created in that case.
            PolicyArchivedError: If ``policies`` names an archived policy.
        """
        now = now or datetime.now(UTC)
        dry_run = dry_run or stage_remediations
        sources = list(source_candidates or [])
        requested = list(policies) if policies is not None else None

        try:
            await self.registry.reload(self.store)
        except StoreUnavailableError as e:
            logger.error("Audit aborted before start: {}", e)
            return _unpersisted_failure(requested or [], trigger, dry_run, str(e), now)

        active = self.registry.resolve(requested)
        policy_ids = [p.id for p in active]

        try:
            run = await self.store.create_run(policies=policy_ids, trigger=trigger, dry_run=dry_run)
        except StoreUnavailableError as e:
            logger.error("Audit aborted before start: {}", e)
            return _unpersisted_failure(policy_ids, trigger, dry_run, str(e), now)

        run_id = run.id
        with audit_context(run_id, policy_ids):
            scan = _ScanState(policies=active, sample_size=self.config.finding_sample_size)
            logger.info(
                "Audit run {} started (trigger={}, dry_run={}, policies={})",
                run_id,
                trigger,
                dry_run,
                ",".join(policy_ids) or "-",
            )

            commit_started = False
            try:
                await self.store.start_run(run_id)
                await self._scan(scan, sources, force_remediation, now)
                logger.info(
                    "Audit run {} scanned {} elections, {} candidates ({} malformed); {} remediation(s) planned",
                    run_id,
                    scan.scanned["elections"],
                    scan.scanned["candidates"],
                    sum(scan.malformed.values()),
                    len(scan.planned),
                )

                if dry_run or not scan.planned:
                    staged = list(scan.planned) if stage_remediations else None
                    finished = await self.store.finish_run(
                        run_id,
                        status="completed",
                        remediations=[],
                        staged_remediations=staged,
                        **scan.result_fields(),
                    )
                    logger.info("Audit run {} completed", run_id)
                    return AuditRunResponse.model_validate(finished)

                async with self.lock:
                    logger.info("Audit run {} acquired write lock", run_id)
                    commit_started = True
                    commit = asyncio.ensure_future(self._commit(run_id, scan))
                    try:
                        finished = await asyncio.shield(commit)
                    except asyncio.CancelledError:
                        logger.warning("Audit run {} cancelled during commit; finishing commit", run_id)
                        await commit
                        raise
                logger.info("Audit run {} completed with {} remediation(s)", run_id, len(finished.remediations))
                return AuditRunResponse.model_validate(finished)

            except asyncio.CancelledError:
                if not commit_started:
                    logger.warning("Audit run {} cancelled before commit", run_id)
                    await asyncio.shield(self._finish_failed(run_id, scan, "cancelled", trigger, dry_run, now))
                raise
            except StoreUnavailableError as e:
                logger.error("Audit run {} failed: store unavailable: {}", run_id, e)
                return await self._finish_failed(run_id, scan, f"store unavailable: {e}", trigger, dry_run, now)
            except Exception as e:
                logger.exception("Audit run {} failed", run_id)
                return await self._finish_failed(run_id, scan, f"{type(e).__name__}: {e}", trigger, dry_run, now)

    async def apply_staged_remediations(self, run_id: uuid.UUID, *, trigger: str = "apply") -> AuditRunResponse:
        """Apply a completed run's staged remediations as a new run.

        Every staged action is re-checked against current record state at
        commit time. The source run itself is never modified.

        Raises:
            AuditRunNotFoundError: If the run does not exist.
            NoStagedRemediationError: If the run has nothing to apply or was already applied.
        """
        source = await self.store.get_run(run_id)
        if source is None:
            raise AuditRunNotFoundError(run_id)
        if source.status != "completed":
            raise NoStagedRemediationError(run_id, f"run is {source.status}")
        if not source.staged_remediations:
            raise NoStagedRemediationError(run_id, "run has no staged remediations")

        now = datetime.now(UTC)
        staged = list(source.staged_remediations)
        commit_started = False
        async with self.lock:
            # At most one completed apply per staged run
            if await self.store.get_applied_run(run_id) is not None:
                raise NoStagedRemediationError(run_id, "staged remediations were already applied")
            run = await self.store.create_run(
                policies=list(source.policies), trigger=trigger, dry_run=False, source_run_id=run_id
            )
            with audit_context(run.id, source.policies):
                scan = _ScanState(policies=[], sample_size=0)
                scan.planned = staged
                logger.info("Applying {} staged remediation(s) from run {} as run {}", len(staged), run_id, run.id)
                try:
                    await self.store.start_run(run.id)
                    commit_started = True
                    commit = asyncio.ensure_future(self._commit(run.id, scan))
                    try:
                        finished = await asyncio.shield(commit)
                    except asyncio.CancelledError:
                        await commit
                        raise
                except asyncio.CancelledError:
                    if not commit_started:
                        await asyncio.shield(self._finish_failed(run.id, scan, "cancelled", trigger, False, now))
                    raise
                except StoreUnavailableError as e:
                    logger.error("Audit run {} failed: store unavailable: {}", run.id, e)
                    return await self._finish_failed(run.id, scan, f"store unavailable: {e}", trigger, False, now)
        logger.info("Audit run {} applied {} remediation(s)", finished.id, len(finished.remediations))
        return AuditRunResponse.model_validate(finished)

    # --- Internals ---

    async def _scan(
        self,
        scan: _ScanState,
        sources: list[SourceCandidate],
        force_remediation: bool,
        now: datetime,
    ) -> None:
        config = self.config
        today = now.date()
        election_policies = [p for p in scan.policies if p.definition.kind == PolicyKind.ELECTION]
        candidate_policies = [p for p in scan.policies if p.definition.kind == PolicyKind.CANDIDATE]
        coverage_policies = [p for p in scan.policies if p.definition.kind == PolicyKind.COVERAGE]

        window_start, window_end = coverage_window(
            today, config.coverage_window_days, config.coverage_lookback_days
        )
        in_window: list[ElectionRecord] = []

        async for batch in self.store.iter_elections(config.batch_size):
            for row in batch:
                scan.scanned["elections"] += 1
                try:
                    record = ElectionRecord.from_model(row)
                except ValidationError as exc:
                    logger.debug("Skipping malformed election {}: {}", row.id, exc.error_count())
                    scan.add_malformed("election", row.id, exc)
                    continue
                self._evaluate_election(record, election_policies, scan, today)
                if coverage_policies and record.active and window_start <= record.election_date <= window_end:
                    in_window.append(record)

        linked: dict[uuid.UUID, int] = defaultdict(int)
        async for batch in self.store.iter_candidates(config.batch_size):
            for row in batch:
                scan.scanned["candidates"] += 1
                if row.election_id is not None:
                    linked[row.election_id] += 1
                if not candidate_policies:
                    continue
                try:
                    record = CandidateRecord.from_model(row)
                except ValidationError as exc:
                    logger.debug("Skipping malformed candidate {}: {}", row.id, exc.error_count())
                    scan.add_malformed("candidate", row.id, exc)
                    continue
                self._evaluate_candidate(record, candidate_policies, scan, force_remediation, now)

        for policy in coverage_policies:
            self._evaluate_coverage(policy, in_window, linked, sources, scan, force_remediation, today)

    def _evaluate_election(
        self,
        record: ElectionRecord,
        policies: list[PolicyState],
        scan: _ScanState,
        today: date,
    ) -> None:
        for policy in policies:
            for violation in validate(
                record, rules=policy.definition.rules, rule_set=self.config.rule_set, today=today
            ):
                scan.add_finding(
                    policy.id,
                    {
                        "record_type": "election",
                        "record_id": str(record.id),
                        "code": violation.code,
                        "message": violation.message,
                        "rule": violation.rule,
                    },
                )

    def _evaluate_candidate(
        self,
        record: CandidateRecord,
        policies: list[PolicyState],
        scan: _ScanState,
        force_remediation: bool,
        now: datetime,
    ) -> None:
        report = classify(record, self.config.authenticity, now=now)
        for policy in policies:
            matched = [issue for issue in report.issues if issue in policy.definition.issues]
            if not matched:
                continue
            scan.add_finding(
                policy.id,
                {
                    "record_type": "candidate",
                    "record_id": str(record.id),
                    "issues": matched,
                    "data_quality": str(report.data_quality),
                },
            )
            remediate = policy.remediation_enabled or (force_remediation and policy.definition.auto_fixable)
            if (
                remediate
                and policy.definition.remediation == RemediationKind.CLEAR_POLLING
                and is_unsourced_polling(record)
            ):
                scan.planned.append(
                    RemediationAction(
                        action=RemediationKind.CLEAR_POLLING,
                        policy_id=policy.id,
                        record_type="candidate",
                        record_id=str(record.id),
                        before={
                            "polling_support": record.polling_support,
                            "polling_source": record.polling_source,
                            "last_polling_update": (
                                record.last_polling_update.isoformat() if record.last_polling_update else None
                            ),
                            "polling_trend": record.polling_trend,
                        },
                        after=dict.fromkeys(POLLING_FIELDS),
                    ).model_dump(mode="json")
                )

    def _evaluate_coverage(
        self,
        policy: PolicyState,
        in_window: list[ElectionRecord],
        linked: dict[uuid.UUID, int],
        sources: list[SourceCandidate],
        scan: _ScanState,
        force_remediation: bool,
        today: date,
    ) -> None:
        gaps = find_coverage_gaps(
            in_window,
            linked,
            today=today,
            window_days=self.config.coverage_window_days,
            lookback_days=self.config.coverage_lookback_days,
        )
        for gap in gaps:
            scan.add_finding(
                policy.id,
                {
                    "record_type": "election",
                    "record_id": str(gap.election_id),
                    "title": gap.title,
                    "election_date": gap.election_date.isoformat(),
                    "days_until": gap.days_until,
                },
            )

        remediate = policy.remediation_enabled or (force_remediation and policy.definition.auto_fixable)
        if not (remediate and sources and gaps):
            return

        gap_ids = {g.election_id for g in gaps}
        canonical = [CanonicalElection.from_record(e) for e in in_window if e.id in gap_ids]
        seen: set[tuple[uuid.UUID, str]] = set()
        for match in reconcile(sources, canonical, self.config.reconciler):
            if match.election_id is None:
                continue
            key = (match.election_id, normalize_name(match.source.name))
            if key in seen:
                continue
            seen.add(key)
            scan.planned.append(
                RemediationAction(
                    action=RemediationKind.LINK_CANDIDATE,
                    policy_id=policy.id,
                    record_type="election",
                    record_id=str(match.election_id),
                    before=None,
                    after={
                        "name": match.source.name,
                        "party": match.source.party,
                        "external_ids": dict(match.source.external_ids),
                        "method": str(match.method),
                        "confidence": match.confidence,
                    },
                ).model_dump(mode="json")
            )

    async def _commit(self, run_id: uuid.UUID, scan: _ScanState) -> AuditRun:
        """Apply planned remediations and complete the run in one store transaction."""
        return await self.store.commit_run(run_id, scan.planned, **scan.result_fields())

    async def _finish_failed(
        self,
        run_id: uuid.UUID,
        scan: _ScanState,
        error: str,
        trigger: str,
        dry_run: bool,
        now: datetime,
    ) -> AuditRunResponse:
        """Persist a failed run with its partial findings and no remediations."""
        try:
            finished = await self.store.finish_run(
                run_id,
                status="failed",
                error=error,
                remediations=[],
                **scan.result_fields(),
            )
        except (StoreUnavailableError, AuditRunImmutableError):
            logger.exception("Could not persist failure of audit run {}", run_id)
            response = _unpersisted_failure([p.id for p in scan.policies], trigger, dry_run, error, now)
            return response.model_copy(update={"id": run_id, **scan.result_fields()})
        logger.info("Audit run {} failed: {}", run_id, error)
        return AuditRunResponse.model_validate(finished)


def _unpersisted_failure(
    policies: list[str],
    trigger: str,
    dry_run: bool,
    error: str,
    now: datetime,
) -> AuditRunResponse:
    """A failed run object for a run the store could not record."""
    return AuditRunResponse(
        id=uuid.uuid4(),
        status="failed",
        trigger=trigger,
        dry_run=dry_run,
        policies=policies,
        finding_counts={},
        error=error,
        started_at=now,
        completed_at=datetime.now(UTC),
    )
