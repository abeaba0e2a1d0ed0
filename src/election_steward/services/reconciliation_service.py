"""Reconciliation service — match source candidates and persist linkages."""

import asyncio
import uuid
from collections import defaultdict

from loguru import logger
from pydantic import ValidationError

from election_steward.lib.reconciler import (
    CanonicalElection,
    ElectionIndex,
    ReconcilerConfig,
    ReconciliationMatch,
    normalize_name,
    reconcile,
)
from election_steward.lib.steward import (
    POLICY_CANDIDATE_COVERAGE,
    RecordStore,
    RemediationKind,
    StoreUnavailableError,
)
from election_steward.schemas.election import ElectionRecord
from election_steward.schemas.reconciliation import (
    LinkResponse,
    MatchResponse,
    ReconcileResponse,
    SourceCandidate,
)


async def load_canonical_elections(store: RecordStore, *, batch_size: int = 500) -> list[CanonicalElection]:
    """Build canonical elections with their linked candidate names and identifiers.

    Malformed elections are left out; they cannot be matched reliably.
    """
    names: dict[uuid.UUID, list[str]] = defaultdict(list)
    external: dict[uuid.UUID, list[tuple[str, str]]] = defaultdict(list)
    async for batch in store.iter_candidates(batch_size):
        for candidate in batch:
            if candidate.election_id is None:
                continue
            names[candidate.election_id].append(candidate.name)
            for system, value in (candidate.external_ids or {}).items():
                external[candidate.election_id].append((str(system), str(value)))

    elections: list[CanonicalElection] = []
    async for batch in store.iter_elections(batch_size):
        for election in batch:
            try:
                record = ElectionRecord.from_model(election)
            except ValidationError:
                logger.debug("Skipping malformed election {} for reconciliation", election.id)
                continue
            if not record.active:
                continue
            elections.append(CanonicalElection.from_record(record, names[record.id], external[record.id]))
    return elections


def _to_response(match: ReconciliationMatch) -> MatchResponse:
    return MatchResponse(
        name=match.source.name,
        jurisdiction=match.source.jurisdiction,
        office=match.source.office,
        election_id=match.election_id,
        confidence=match.confidence,
        method=str(match.method),
        reason=str(match.reason) if match.reason else None,
    )


async def match_candidates(
    store: RecordStore,
    sources: list[SourceCandidate],
    config: ReconcilerConfig,
    *,
    batch_size: int = 500,
) -> tuple[list[ReconciliationMatch], ReconcileResponse]:
    """Reconcile a source batch without writing anything.

    Returns:
        Tuple of (raw matches, response body).
    """
    elections = await load_canonical_elections(store, batch_size=batch_size)
    matches = reconcile(sources, ElectionIndex(elections), config)
    matched = sum(1 for m in matches if m.resolved)
    logger.info(
        "Reconciled {} source candidate(s): {} matched, {} unresolved",
        len(matches),
        matched,
        len(matches) - matched,
    )
    return matches, ReconcileResponse(
        total=len(matches),
        matched=matched,
        unresolved=len(matches) - matched,
        matches=[_to_response(m) for m in matches],
    )


async def link_candidates(
    store: RecordStore,
    sources: list[SourceCandidate],
    config: ReconcilerConfig,
    lock: asyncio.Lock,
    *,
    batch_size: int = 500,
) -> LinkResponse:
    """Reconcile a source batch and persist a candidate row for each new link.

    A resolved source whose normalized name is already linked to the
    election is counted as already linked. Writes happen under the write
    lock in one transaction that also completes an audit run holding the
    before/after diff of every new link.
    """
    matches, preview = await match_candidates(store, sources, config, batch_size=batch_size)

    actions = []
    seen: set[tuple[uuid.UUID, str]] = set()
    for match in matches:
        if match.election_id is None:
            continue
        key = (match.election_id, normalize_name(match.source.name))
        if key in seen:
            continue
        seen.add(key)
        actions.append(
            {
                "action": str(RemediationKind.LINK_CANDIDATE),
                "policy_id": POLICY_CANDIDATE_COVERAGE,
                "record_type": "election",
                "record_id": str(match.election_id),
                "before": None,
                "after": {
                    "name": match.source.name,
                    "party": match.source.party,
                    "external_ids": dict(match.source.external_ids),
                    "method": str(match.method),
                    "confidence": match.confidence,
                },
            }
        )

    if not actions:
        logger.info("No linkable matches in batch of {}", preview.total)
        return LinkResponse(**preview.model_dump(), linked=0, already_linked=0)

    async with lock:
        run = await store.create_run(policies=[POLICY_CANDIDATE_COVERAGE], trigger="reconcile", dry_run=False)
        await store.start_run(run.id)
        try:
            finished = await asyncio.shield(store.commit_run(run.id, actions))
        except StoreUnavailableError as e:
            try:
                await store.finish_run(run.id, status="failed", error=f"store unavailable: {e}", remediations=[])
            except StoreUnavailableError:
                logger.exception("Could not record failure of link run {}", run.id)
            raise

    linked = len(finished.remediations)
    logger.info("Linked {} candidate(s) in run {}; {} already linked", linked, run.id, preview.matched - linked)
    return LinkResponse(
        **preview.model_dump(),
        linked=linked,
        already_linked=preview.matched - linked,
        run_id=finished.id,
    )
