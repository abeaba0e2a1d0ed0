"""Candidate-to-election matching pipeline.

Each source candidate is resolved against the canonical elections by the
first stage that produces a winner:

1. ``external_id``: a (system, id) pair the source supplies is already
   stored against an election or one of its linked candidates.
2. ``exact_name``: normalized name equals a linked candidate's normalized
   name in the same jurisdiction and office.
3. ``fuzzy_name``: best name similarity at or above the fuzzy threshold in
   the same jurisdiction and office.
4. ``contest``: no linked candidate resembles the source, but exactly one
   election in the same jurisdiction and office is held within the date
   tolerance of the source's stated date. This is what lets a source batch
   close a coverage gap for an election with no candidates yet.

Ties at any stage are broken by the election date nearest the source's
stated date, then by the lowest edit distance. A tie that survives both
breaks is reported as ``ambiguous`` and left unresolved rather than guessed.
"""

import enum
import uuid
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from difflib import SequenceMatcher

from election_steward.lib.reconciler.normalizer import normalize_name, normalize_office, offices_match
from election_steward.schemas.election import ElectionRecord
from election_steward.schemas.reconciliation import SourceCandidate

EXACT_CONFIDENCE = 1.0
DEFAULT_FUZZY_THRESHOLD = 0.88
DEFAULT_CONTEST_CONFIDENCE = 0.8
DEFAULT_CONTEST_DATE_TOLERANCE_DAYS = 7

_SCORE_EPSILON = 1e-9


class MatchMethod(enum.StrEnum):
    """Pipeline stage that produced a match."""

    EXTERNAL_ID = "external_id"
    EXACT_NAME = "exact_name"
    FUZZY_NAME = "fuzzy_name"
    CONTEST = "contest"
    UNRESOLVED = "unresolved"


class UnresolvedReason(enum.StrEnum):
    """Why a source candidate was not linked."""

    NO_MATCH = "no_match"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class ReconcilerConfig:
    """Matching thresholds."""

    fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD
    contest_confidence: float = DEFAULT_CONTEST_CONFIDENCE
    contest_date_tolerance_days: int = DEFAULT_CONTEST_DATE_TOLERANCE_DAYS


@dataclass(frozen=True)
class CanonicalElection:
    """An election as seen by the reconciler, with its linked candidates."""

    id: uuid.UUID
    title: str
    jurisdiction: str | None
    election_date: date
    offices: tuple[str, ...] = ()
    external_ids: dict[str, str] = field(default_factory=dict)
    candidate_names: tuple[str, ...] = ()
    candidate_external_ids: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_record(
        cls,
        election: ElectionRecord,
        candidate_names: Iterable[str] = (),
        candidate_external_ids: Iterable[tuple[str, str]] = (),
    ) -> "CanonicalElection":
        return cls(
            id=election.id,
            title=election.title,
            jurisdiction=election.jurisdiction.upper() if election.jurisdiction else None,
            election_date=election.election_date,
            offices=tuple(election.offices),
            external_ids=dict(election.external_ids),
            candidate_names=tuple(candidate_names),
            candidate_external_ids=tuple(candidate_external_ids),
        )


@dataclass(frozen=True)
class ReconciliationMatch:
    """Transient link from a source candidate to zero or one election."""

    source: SourceCandidate
    election_id: uuid.UUID | None
    confidence: float
    method: MatchMethod
    reason: UnresolvedReason | None = None
    alternatives: tuple[uuid.UUID, ...] = ()

    @property
    def resolved(self) -> bool:
        return self.election_id is not None


@dataclass(frozen=True)
class _Candidate:
    """A scored election option considered for one source."""

    election: "_IndexedElection"
    score: float
    distance: int


@dataclass
class _IndexedElection:
    election: CanonicalElection
    office_keys: list[frozenset[str]]
    names: set[str]


def levenshtein(a: str, b: str, max_distance: int | None = None) -> int:
    """Bounded Levenshtein edit distance.

    Args:
        a: First string.
        b: Second string.
        max_distance: Stop early once the distance must exceed this bound.

    Returns:
        The edit distance, or ``max_distance + 1`` if it exceeds the bound.
    """
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if max_distance is not None and len(a) - len(b) > max_distance:
        return max_distance + 1
    previous = list(range(len(b) + 1))
    for i, ch_a in enumerate(a, start=1):
        current = [i]
        for j, ch_b in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ch_a != ch_b),
                )
            )
        if max_distance is not None and min(current) > max_distance:
            return max_distance + 1
        previous = current
    return previous[-1]


def name_similarity(a: str, b: str) -> float:
    """Similarity of two normalized names in [0, 1].

    Takes the better of a character-sequence ratio and the same ratio over
    alphabetically sorted tokens, so "smith john" and "john smith" score 1.0.
    """
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    direct = SequenceMatcher(None, a, b).ratio()
    sorted_a = " ".join(sorted(a.split()))
    sorted_b = " ".join(sorted(b.split()))
    return max(direct, SequenceMatcher(None, sorted_a, sorted_b).ratio())


class ElectionIndex:
    """Lookup structures over canonical elections for one reconciliation batch."""

    def __init__(self, elections: Iterable[CanonicalElection]) -> None:
        self._by_external: dict[tuple[str, str], list[_IndexedElection]] = defaultdict(list)
        self._by_jurisdiction: dict[str | None, list[_IndexedElection]] = defaultdict(list)
        self._all: list[_IndexedElection] = []

        for election in elections:
            office_keys = [normalize_office(o) for o in election.offices]
            office_keys.append(normalize_office(election.title))
            names = {normalize_name(n) for n in election.candidate_names}
            names.discard("")
            indexed = _IndexedElection(election=election, office_keys=office_keys, names=names)
            self._all.append(indexed)
            self._by_jurisdiction[election.jurisdiction].append(indexed)
            for key in (*election.external_ids.items(), *election.candidate_external_ids):
                self._by_external[_external_key(*key)].append(indexed)

    def __len__(self) -> int:
        return len(self._all)

    def by_external_ids(self, external_ids: dict[str, str]) -> list[_IndexedElection]:
        seen: dict[uuid.UUID, _IndexedElection] = {}
        for system, value in external_ids.items():
            for indexed in self._by_external.get(_external_key(system, value), []):
                seen[indexed.election.id] = indexed
        return list(seen.values())

    def in_scope(self, source: SourceCandidate) -> list[_IndexedElection]:
        """Elections sharing the source's jurisdiction and office.

        A missing jurisdiction on either side matches any jurisdiction.
        """
        if source.jurisdiction is None:
            pool = self._all
        else:
            pool = [*self._by_jurisdiction.get(source.jurisdiction, []), *self._by_jurisdiction.get(None, [])]
        if not source.office:
            return list(pool)
        office = normalize_office(source.office)
        return [e for e in pool if offices_match(office, e.office_keys)]


def _external_key(system: str, value: str) -> tuple[str, str]:
    return system.strip().lower(), value.strip()


def _date_distance(election: CanonicalElection, source_date: date | None) -> int:
    if source_date is None:
        return 0
    return abs((election.election_date - source_date).days)


def _pick(options: Sequence[_Candidate], source: SourceCandidate) -> tuple[_Candidate | None, tuple[uuid.UUID, ...]]:
    """Choose a single winner or report the tied alternatives."""
    if not options:
        return None, ()
    best_score = max(o.score for o in options)
    tied = [o for o in options if best_score - o.score <= _SCORE_EPSILON]
    if len(tied) > 1:
        nearest = min(_date_distance(o.election.election, source.election_date) for o in tied)
        tied = [o for o in tied if _date_distance(o.election.election, source.election_date) == nearest]
    if len(tied) > 1:
        lowest = min(o.distance for o in tied)
        tied = [o for o in tied if o.distance == lowest]
    if len(tied) > 1:
        return None, tuple(sorted(o.election.election.id for o in tied))
    return tied[0], ()


def _best_name_option(indexed: _IndexedElection, source_name: str) -> _Candidate | None:
    best: _Candidate | None = None
    for name in indexed.names:
        score = name_similarity(source_name, name)
        distance = levenshtein(source_name, name)
        if best is None or score > best.score or (score == best.score and distance < best.distance):
            best = _Candidate(election=indexed, score=score, distance=distance)
    return best


def match_candidate(
    source: SourceCandidate,
    index: ElectionIndex,
    config: ReconcilerConfig = ReconcilerConfig(),
) -> ReconciliationMatch:
    """Resolve one source candidate against the election index.

    Args:
        source: Source candidate descriptor.
        index: Index built over the canonical elections.
        config: Thresholds.

    Returns:
        The ReconciliationMatch for this source candidate.
    """
    source_name = normalize_name(source.name)

    def _resolved(option: _Candidate, method: MatchMethod, confidence: float) -> ReconciliationMatch:
        return ReconciliationMatch(
            source=source,
            election_id=option.election.election.id,
            confidence=round(confidence, 4),
            method=method,
        )

    def _ambiguous(alternatives: tuple[uuid.UUID, ...]) -> ReconciliationMatch:
        return ReconciliationMatch(
            source=source,
            election_id=None,
            confidence=0.0,
            method=MatchMethod.UNRESOLVED,
            reason=UnresolvedReason.AMBIGUOUS,
            alternatives=alternatives,
        )

    # 1. External identifiers
    if source.external_ids:
        external = [
            _Candidate(election=e, score=EXACT_CONFIDENCE, distance=0) for e in index.by_external_ids(source.external_ids)
        ]
        winner, tied = _pick(external, source)
        if winner is not None:
            return _resolved(winner, MatchMethod.EXTERNAL_ID, EXACT_CONFIDENCE)
        if tied:
            return _ambiguous(tied)

    scope = index.in_scope(source)

    # 2. Exact normalized name
    if source_name:
        exact = [_Candidate(election=e, score=EXACT_CONFIDENCE, distance=0) for e in scope if source_name in e.names]
        winner, tied = _pick(exact, source)
        if winner is not None:
            return _resolved(winner, MatchMethod.EXACT_NAME, EXACT_CONFIDENCE)
        if tied:
            return _ambiguous(tied)

        # 3. Fuzzy name
        fuzzy: list[_Candidate] = []
        for indexed in scope:
            option = _best_name_option(indexed, source_name)
            if option is not None and option.score >= config.fuzzy_threshold:
                fuzzy.append(option)
        winner, tied = _pick(fuzzy, source)
        if winner is not None:
            return _resolved(winner, MatchMethod.FUZZY_NAME, winner.score)
        if tied:
            return _ambiguous(tied)

    # 4. Contest (jurisdiction + office + date)
    if source.jurisdiction and source.office and source.election_date is not None:
        tolerance = config.contest_date_tolerance_days
        contest = [
            _Candidate(election=e, score=config.contest_confidence, distance=0)
            for e in scope
            if _date_distance(e.election, source.election_date) <= tolerance
        ]
        winner, tied = _pick(contest, source)
        if winner is not None:
            return _resolved(winner, MatchMethod.CONTEST, config.contest_confidence)
        if tied:
            return _ambiguous(tied)

    return ReconciliationMatch(
        source=source,
        election_id=None,
        confidence=0.0,
        method=MatchMethod.UNRESOLVED,
        reason=UnresolvedReason.NO_MATCH,
    )


def reconcile(
    sources: Iterable[SourceCandidate],
    elections: Iterable[CanonicalElection],
    config: ReconcilerConfig = ReconcilerConfig(),
) -> list[ReconciliationMatch]:
    """Match a batch of source candidates to canonical elections.

    Args:
        sources: Source candidate descriptors.
        elections: Canonical elections with their linked candidate names.
        config: Thresholds.

    Returns:
        One ReconciliationMatch per source candidate, in input order.
    """
    index = elections if isinstance(elections, ElectionIndex) else ElectionIndex(elections)
    return [match_candidate(source, index, config) for source in sources]
