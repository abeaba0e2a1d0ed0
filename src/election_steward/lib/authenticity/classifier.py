"""Candidate data authenticity classifier.

Scores a ``CandidateRecord`` by how well-sourced its polling and result
numbers are. Polling is authentic only when it names a verified source and
was refreshed within the freshness window, and not dated in the future
beyond a small clock-skew allowance. Results are authentic only when
certified, officially sourced, and complete.

Tiering:
    excellent — polling and results both authentic, nothing unauthenticated
    good      — one authentic signal, nothing unauthenticated
    fair      — an authentic signal alongside unauthenticated values,
                or no numeric values at all
    poor      — only unauthenticated values (e.g., static unsourced polling)
"""

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from election_steward.schemas.candidate import CandidateRecord

CLOCK_SKEW = timedelta(minutes=5)


class DataQuality(enum.StrEnum):
    """Four-level authenticity tier."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class AuthenticityConfig:
    """Allow-lists and freshness window used by the classifier.

    Built once from settings and passed in; the classifier never mutates it.
    """

    verified_sources: frozenset[str] = frozenset()
    official_result_markers: tuple[str, ...] = ()
    freshness: timedelta = timedelta(days=7)

    @classmethod
    def build(
        cls,
        verified_sources: Iterable[str],
        official_result_markers: Iterable[str],
        freshness_days: int = 7,
    ) -> "AuthenticityConfig":
        """Normalize source names and markers into a config."""
        return cls(
            verified_sources=frozenset(_source_key(s) for s in verified_sources if s.strip()),
            official_result_markers=tuple(m.strip().lower() for m in official_result_markers if m.strip()),
            freshness=timedelta(days=freshness_days),
        )


@dataclass(frozen=True)
class AuthenticityReport:
    """Classification of one candidate record."""

    has_authentic_polling: bool
    has_authentic_votes: bool
    has_unsourced_polling: bool
    data_quality: DataQuality
    issues: list[str] = field(default_factory=list)


def _source_key(source: str) -> str:
    return " ".join(source.split()).casefold()


def is_verified_source(source: str | None, config: AuthenticityConfig) -> bool:
    """Whether a polling source is on the verified allow-list."""
    return source is not None and _source_key(source) in config.verified_sources


def is_official_result_source(source: str | None, config: AuthenticityConfig) -> bool:
    """Whether a result source denotes an official election authority."""
    if source is None:
        return False
    lowered = source.lower()
    return any(marker in lowered for marker in config.official_result_markers)


def is_unsourced_polling(candidate: CandidateRecord) -> bool:
    """Polling support present without any source: static, never live."""
    return candidate.polling_support is not None and candidate.polling_source is None


def classify(
    candidate: CandidateRecord,
    config: AuthenticityConfig,
    *,
    now: datetime | None = None,
) -> AuthenticityReport:
    """Classify a candidate's polling and result data.

    Args:
        candidate: The validated candidate record.
        config: Verified sources, official markers, and freshness window.
        now: Evaluation time (default: current UTC time).

    Returns:
        AuthenticityReport with both authenticity flags and the quality tier.
    """
    now = now or datetime.now(UTC)
    issues: list[str] = []

    age = now - candidate.last_polling_update if candidate.last_polling_update is not None else None
    future_dated = age is not None and age < -CLOCK_SKEW
    fresh = age is not None and not future_dated and age <= config.freshness
    has_authentic_polling = (
        candidate.polling_source is not None and is_verified_source(candidate.polling_source, config) and fresh
    )
    unsourced = is_unsourced_polling(candidate)

    if candidate.polling_support is not None and not has_authentic_polling:
        if unsourced:
            issues.append("polling_unsourced")
        elif not is_verified_source(candidate.polling_source, config):
            issues.append("polling_source_unverified")
        if future_dated:
            issues.append("polling_future_dated")
        elif candidate.polling_source is not None and not fresh:
            issues.append("polling_stale")

    has_authentic_votes = (
        candidate.result_certified
        and is_official_result_source(candidate.result_source, config)
        and candidate.vote_percentage is not None
        and candidate.votes_received is not None
    )
    if candidate.has_result_values and not has_authentic_votes:
        if not candidate.result_certified:
            issues.append("results_uncertified")
        if not is_official_result_source(candidate.result_source, config):
            issues.append("results_unofficial_source")
        if candidate.vote_percentage is None or candidate.votes_received is None:
            issues.append("results_incomplete")

    unauthenticated_present = (candidate.polling_support is not None and not has_authentic_polling) or (
        candidate.has_result_values and not has_authentic_votes
    )
    authentic_count = int(has_authentic_polling) + int(has_authentic_votes)

    if authentic_count == 2 and not unauthenticated_present:
        quality = DataQuality.EXCELLENT
    elif authentic_count >= 1 and not unauthenticated_present:
        quality = DataQuality.GOOD
    elif authentic_count >= 1 or not unauthenticated_present:
        quality = DataQuality.FAIR
    else:
        quality = DataQuality.POOR

    return AuthenticityReport(
        has_authentic_polling=has_authentic_polling,
        has_authentic_votes=has_authentic_votes,
        has_unsourced_polling=unsourced,
        data_quality=quality,
        issues=issues,
    )
