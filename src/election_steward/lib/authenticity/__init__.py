"""Authenticity library — score candidate polling and result data quality.

Public API:
    - classify: Classify one CandidateRecord into an AuthenticityReport
    - AuthenticityConfig: Verified-source allow-list and freshness window
    - AuthenticityReport: Classification result
    - DataQuality: excellent > good > fair > poor
    - is_unsourced_polling: Polling support present without a source
"""

from election_steward.lib.authenticity.classifier import (
    AuthenticityConfig,
    AuthenticityReport,
    DataQuality,
    classify,
    is_official_result_source,
    is_unsourced_polling,
    is_verified_source,
)

__all__ = [
    "AuthenticityConfig",
    "AuthenticityReport",
    "DataQuality",
    "classify",
    "is_official_result_source",
    "is_unsourced_polling",
    "is_verified_source",
]
