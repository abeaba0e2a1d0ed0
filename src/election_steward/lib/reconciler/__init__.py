"""Reconciler library — link source candidates to canonical elections.

Public API:
    - reconcile: Match a batch of SourceCandidates against CanonicalElections
    - match_candidate: Resolve one source candidate against an ElectionIndex
    - ElectionIndex: Lookup structures over canonical elections
    - CanonicalElection: Election plus its linked candidate names/identifiers
    - ReconciliationMatch: Match outcome (election id, confidence, method)
    - ReconcilerConfig: Fuzzy threshold and contest tolerance
    - normalize_name / normalize_office: Comparison keys
    - find_coverage_gaps: Elections in the window with no linked candidate
"""

from election_steward.lib.reconciler.coverage import CoverageGap, coverage_window, find_coverage_gaps
from election_steward.lib.reconciler.matcher import (
    DEFAULT_FUZZY_THRESHOLD,
    EXACT_CONFIDENCE,
    CanonicalElection,
    ElectionIndex,
    MatchMethod,
    ReconcilerConfig,
    ReconciliationMatch,
    UnresolvedReason,
    levenshtein,
    match_candidate,
    name_similarity,
    reconcile,
)
from election_steward.lib.reconciler.normalizer import fold_text, normalize_name, normalize_office, offices_match

__all__ = [
    "DEFAULT_FUZZY_THRESHOLD",
    "EXACT_CONFIDENCE",
    "CanonicalElection",
    "CoverageGap",
    "ElectionIndex",
    "MatchMethod",
    "ReconcilerConfig",
    "ReconciliationMatch",
    "UnresolvedReason",
    "coverage_window",
    "find_coverage_gaps",
    "fold_text",
    "levenshtein",
    "match_candidate",
    "name_similarity",
    "normalize_name",
    "normalize_office",
    "offices_match",
    "reconcile",
]
