"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_VERIFIED_POLLING_SOURCES = (
    "FiveThirtyEight,RealClearPolitics,Ballotpedia,Emerson College,Quinnipiac University,"
    "Marist College,Monmouth University,Siena College,SurveyUSA,YouGov,Ipsos,Gallup,"
    "Pew Research Center,Associated Press,Reuters,NPR"
)

_DEFAULT_OFFICIAL_RESULT_MARKERS = (
    "secretary of state,board of elections,election commission,elections division,"
    "county clerk,canvassing board,.gov"
)


def _split_csv(value: str) -> list[str]:
    if not value.strip():
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="PostgreSQL async connection string",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema for isolated environments (e.g., pr_42)",
    )

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not re.match(r"^[a-z_][a-z0-9_]{0,62}$", v):
            msg = "Invalid database_schema: must match ^[a-z_][a-z0-9_]{0,62}$"
            raise ValueError(msg)
        return v

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins (must be explicitly configured)",
    )
    cors_origin_regex: str = Field(
        default="",
        description="Regex pattern for allowed CORS origins",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return _split_csv(self.cors_origins)

    # API
    api_v1_prefix: str = Field(
        default="/api/v1",
        description="API version prefix",
    )
    steward_admin_token: str | None = Field(
        default=None,
        min_length=16,
        description="Shared token required in X-Steward-Token for mutating steward endpoints (disabled when unset)",
    )

    # Rule validator
    saturday_only_jurisdictions: str = Field(
        default="LA",
        description="Comma-separated state codes whose elections must fall on a Saturday",
    )
    strict_federal_tuesday: bool = Field(
        default=False,
        description="Require federal general elections on the Tuesday after the first Monday in November",
    )
    max_election_year_drift: int = Field(
        default=4,
        description="Maximum distance in years between an election date and the current year",
        ge=0,
    )

    @property
    def saturday_only_jurisdiction_list(self) -> list[str]:
        """Parse Saturday-only jurisdictions into an uppercase list."""
        return [code.upper() for code in _split_csv(self.saturday_only_jurisdictions)]

    # Authenticity
    verified_polling_sources: str = Field(
        default=_DEFAULT_VERIFIED_POLLING_SOURCES,
        description="Comma-separated allow-list of verified polling sources",
    )
    official_result_markers: str = Field(
        default=_DEFAULT_OFFICIAL_RESULT_MARKERS,
        description="Comma-separated substrings identifying an official result source",
    )
    polling_freshness_days: int = Field(
        default=7,
        description="Maximum age in days of a polling update considered live",
        gt=0,
    )

    @property
    def verified_polling_source_list(self) -> list[str]:
        """Parse verified polling sources into a list."""
        return _split_csv(self.verified_polling_sources)

    @property
    def official_result_marker_list(self) -> list[str]:
        """Parse official result markers into a lowercase list."""
        return [m.lower() for m in _split_csv(self.official_result_markers)]

    # Reconciliation
    reconcile_fuzzy_threshold: float = Field(
        default=0.88,
        description="Minimum fuzzy name score (0-1) accepted as a match",
        gt=0,
        le=1,
    )
    reconcile_contest_date_tolerance_days: int = Field(
        default=7,
        description="Maximum distance in days between a source date and an election for contest matching",
        ge=0,
    )
    coverage_window_days: int = Field(
        default=60,
        description="Default lookahead window in days for candidate coverage checks",
        ge=1,
        le=366,
    )
    coverage_lookback_days: int = Field(
        default=0,
        description="Days before today still included in coverage checks",
        ge=0,
    )

    # Audit
    audit_batch_size: int = Field(
        default=500,
        description="Records read per page while scanning the record store",
        gt=0,
    )
    audit_finding_sample_size: int = Field(
        default=50,
        description="Maximum finding details kept per policy in an audit run",
        ge=0,
    )
    audit_schedule_enabled: bool = Field(
        default=False,
        description="Enable the recurring background audit loop",
    )
    audit_schedule_interval: int = Field(
        default=3600,
        description="Seconds between scheduled audit runs",
        ge=60,
    )

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, dev, staging)",
    )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
