"""Data audit service — candidate authenticity reports and percentage summary."""

import uuid
from datetime import UTC, datetime

from loguru import logger
from pydantic import ValidationError

from election_steward.lib.authenticity import AuthenticityConfig, classify
from election_steward.lib.steward import RecordStore
from election_steward.schemas.candidate import AuthenticityReportResponse, CandidateRecord
from election_steward.schemas.data_audit import (
    AuthenticityCriteria,
    CandidatePercentageDetail,
    PercentageAuditResponse,
    PercentageAuditSummary,
    QualityBreakdown,
)


async def get_candidate_authenticity(
    store: RecordStore,
    candidate_id: uuid.UUID,
    config: AuthenticityConfig,
    *,
    now: datetime | None = None,
) -> AuthenticityReportResponse | None:
    """Classify one candidate.

    Returns:
        The report, or None if the candidate does not exist.

    Raises:
        ValueError: If the stored candidate is malformed.
    """
    candidate = await store.get_candidate(candidate_id)
    if candidate is None:
        return None
    try:
        record = CandidateRecord.from_model(candidate)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        msg = f"Candidate {candidate_id} is malformed ({fields})"
        raise ValueError(msg) from exc

    report = classify(record, config, now=now)
    return AuthenticityReportResponse(
        candidate_id=record.id,
        name=record.name,
        election_id=record.election_id,
        has_authentic_polling=report.has_authentic_polling,
        has_authentic_votes=report.has_authentic_votes,
        has_unsourced_polling=report.has_unsourced_polling,
        data_quality=str(report.data_quality),
        issues=list(report.issues),
    )


def authenticity_criteria(
    config: AuthenticityConfig,
    verified_sources: list[str],
    official_result_markers: list[str],
) -> AuthenticityCriteria:
    """Describe what the classifier accepts as authentic."""
    days = config.freshness.days
    return AuthenticityCriteria(
        polling_requirements=[
            "Must have a polling source",
            "Polling source must be in the verified list",
            f"Must have a polling update within {days} day{'s' if days != 1 else ''}",
            "Polling update must not be dated in the future",
        ],
        vote_requirements=[
            "Must have a result source from an official election authority",
            "Must have results certified",
            "Must have both vote percentage and votes received",
        ],
        verified_sources=sorted(verified_sources),
        official_result_markers=list(official_result_markers),
    )


async def build_percentage_audit(
    store: RecordStore,
    config: AuthenticityConfig,
    *,
    verified_sources: list[str],
    official_result_markers: list[str],
    batch_size: int = 500,
    now: datetime | None = None,
) -> PercentageAuditResponse:
    """Summarize authenticity across every candidate.

    Candidates carrying polling or vote percentages get a detail row;
    every well-formed candidate counts toward the quality breakdown.

    Args:
        store: Record store.
        config: Classifier configuration.
        verified_sources: Verified polling sources, as configured.
        official_result_markers: Official result markers, as configured.
        batch_size: Page size for the candidate scan.
        now: Evaluation time (default: current UTC time).

    Returns:
        PercentageAuditResponse with totals, tier breakdown, and detail rows.
    """
    now = now or datetime.now(UTC)
    summary = PercentageAuditSummary()
    breakdown = QualityBreakdown()

    async for batch in store.iter_candidates(batch_size):
        for candidate in batch:
            summary.total_candidates += 1
            try:
                record = CandidateRecord.from_model(candidate)
            except ValidationError:
                logger.debug("Skipping malformed candidate {} in percentage audit", candidate.id)
                summary.malformed_candidates += 1
                continue

            report = classify(record, config, now=now)
            tier = str(report.data_quality)
            setattr(breakdown, tier, getattr(breakdown, tier) + 1)

            if record.polling_support is not None:
                summary.candidates_with_polling_data += 1
            if record.vote_percentage is not None:
                summary.candidates_with_vote_data += 1
            if report.has_authentic_polling:
                summary.candidates_with_authentic_polling += 1
            if report.has_authentic_votes:
                summary.candidates_with_authentic_votes += 1

            if record.polling_support is not None or record.vote_percentage is not None:
                summary.detailed_report.append(
                    CandidatePercentageDetail(
                        id=record.id,
                        name=record.name,
                        election_id=record.election_id,
                        polling_support=record.polling_support,
                        vote_percentage=record.vote_percentage,
                        last_polling_update=record.last_polling_update,
                        polling_source=record.polling_source,
                        has_authentic_polling=report.has_authentic_polling,
                        has_authentic_votes=report.has_authentic_votes,
                        data_quality=tier,
                        issues=list(report.issues),
                    )
                )

    summary.data_quality_breakdown = breakdown
    return PercentageAuditResponse(
        timestamp=now,
        summary=summary,
        authenticity_criteria=authenticity_criteria(config, verified_sources, official_result_markers),
    )
