"""Coverage-gap detection.

An active election held inside the coverage window must have at least one
linked candidate. Elections that fail this are enumerated one by one so the
gap stays visible until it is fixed.
"""

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, timedelta

from election_steward.schemas.election import ElectionRecord


@dataclass(frozen=True)
class CoverageGap:
    """An election inside the window with no linked candidates."""

    election_id: uuid.UUID
    title: str
    jurisdiction: str | None
    election_date: date
    days_until: int


def coverage_window(today: date, window_days: int, lookback_days: int = 0) -> tuple[date, date]:
    """Return the inclusive (start, end) dates of the coverage window."""
    if window_days < 0 or lookback_days < 0:
        raise ValueError("window_days and lookback_days must be non-negative")
    return today - timedelta(days=lookback_days), today + timedelta(days=window_days)


def find_coverage_gaps(
    elections: Iterable[ElectionRecord],
    linked_counts: Mapping[uuid.UUID, int],
    *,
    today: date,
    window_days: int,
    lookback_days: int = 0,
) -> list[CoverageGap]:
    """List active elections in the window that have no linked candidate.

    Args:
        elections: Validated election records to check.
        linked_counts: Linked candidate count per election id; missing ids count as 0.
        today: Reference date.
        window_days: Days ahead of ``today`` to include.
        lookback_days: Days before ``today`` to include.

    Returns:
        Gaps ordered by election date, then title.
    """
    start, end = coverage_window(today, window_days, lookback_days)
    gaps = [
        CoverageGap(
            election_id=e.id,
            title=e.title,
            jurisdiction=e.jurisdiction,
            election_date=e.election_date,
            days_until=(e.election_date - today).days,
        )
        for e in elections
        if e.active and start <= e.election_date <= end and linked_counts.get(e.id, 0) == 0
    ]
    gaps.sort(key=lambda g: (g.election_date, g.title))
    return gaps
