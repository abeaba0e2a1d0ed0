"""Election service — rule violations and candidate coverage queries."""

import uuid
from datetime import UTC, date, datetime

from loguru import logger
from pydantic import ValidationError

from election_steward.lib.reconciler import coverage_window, find_coverage_gaps
from election_steward.lib.rule_validator import RuleSet, validate
from election_steward.lib.steward import RecordStore
from election_steward.schemas.election import (
    CoverageGapResponse,
    ElectionRecord,
    ElectionViolationsResponse,
    MissingCandidatesResponse,
    ViolationResponse,
)


async def get_election_violations(
    store: RecordStore,
    election_id: uuid.UUID,
    rule_set: RuleSet,
    *,
    today: date | None = None,
) -> ElectionViolationsResponse | None:
    """Validate one election against every rule.

    Args:
        store: Record store.
        election_id: The election to validate.
        rule_set: Jurisdiction configuration.
        today: Evaluation date (default: today in UTC).

    Returns:
        The violations, or None if the election does not exist. A malformed
        election is reported with ``malformed=True`` and its field errors.
    """
    election = await store.get_election(election_id)
    if election is None:
        return None

    try:
        record = ElectionRecord.from_model(election)
    except ValidationError as exc:
        return ElectionViolationsResponse(
            election_id=election.id,
            title=election.title or "",
            jurisdiction=election.jurisdiction,
            election_date=election.election_date,
            violations=[],
            malformed=True,
            errors=[f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()],
        )

    violations = validate(record, rule_set=rule_set, today=today)
    return ElectionViolationsResponse(
        election_id=record.id,
        title=record.title,
        jurisdiction=record.jurisdiction,
        election_date=record.election_date,
        violations=[ViolationResponse(code=v.code, message=v.message, rule=v.rule) for v in violations],
    )


async def find_missing_candidates(
    store: RecordStore,
    *,
    window_days: int,
    lookback_days: int = 0,
    batch_size: int = 500,
    today: date | None = None,
) -> MissingCandidatesResponse:
    """List active elections in the coverage window with no linked candidate.

    Args:
        store: Record store.
        window_days: Days ahead of today to check.
        lookback_days: Days before today to check.
        batch_size: Page size for the election scan.
        today: Reference date (default: today in UTC).

    Returns:
        MissingCandidatesResponse listing every uncovered election. Active
        elections in the window that fail parsing are reported as skipped,
        never dropped.

    Raises:
        ValueError: If the window or lookback is negative.
    """
    today = today or datetime.now(UTC).date()
    start, end = coverage_window(today, window_days, lookback_days)
    records: list[ElectionRecord] = []
    skipped: list[uuid.UUID] = []
    async for batch in store.iter_elections(batch_size):
        for election in batch:
            if not election.is_active:
                continue
            if not start <= election.election_date <= end:
                continue
            try:
                records.append(ElectionRecord.from_model(election))
            except ValidationError as exc:
                logger.warning(
                    "Malformed election {} skipped in coverage check: {} error(s)",
                    election.id,
                    exc.error_count(),
                )
                skipped.append(election.id)

    counts = await store.linked_candidate_counts()
    gaps = find_coverage_gaps(
        records,
        counts,
        today=today,
        window_days=window_days,
        lookback_days=lookback_days,
    )
    return MissingCandidatesResponse(
        window_days=window_days,
        lookback_days=lookback_days,
        checked=len(records),
        skipped_malformed=len(skipped),
        skipped_election_ids=skipped,
        missing=[
            CoverageGapResponse(
                election_id=g.election_id,
                title=g.title,
                jurisdiction=g.jurisdiction,
                election_date=g.election_date,
                days_until=g.days_until,
            )
            for g in gaps
        ],
    )
