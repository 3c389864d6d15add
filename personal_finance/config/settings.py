"""
Configuration Management for Personal Finance

Settings are read from environment variables (and a .env file) with
pydantic-settings. Every backend the application can talk to, the
document store and the token verifier, is configured here and checked
by validate_all_settings() at start-up.
"""

import warnings
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Which document store backend to build."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        extra="ignore"
    )

    backend: Literal["memory", "google_sheets"] = Field(
        default="memory",
        description="Document store implementation"
    )


class GoogleSheetsSettings(BaseSettings):
    """Where the Google Sheets store keeps its worksheets."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Service account key file (JSON)"
    )
    spreadsheet_id: str = Field(
        ...,
        description="Key of the spreadsheet holding one worksheet per entity kind"
    )
    poll_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        description="How often realtime listeners re-read a worksheet"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """The key file may be mounted after start-up, so only warn."""
        if not Path(v).exists():
            warnings.warn(
                f"Service account key {v} does not exist yet; "
                "the Google Sheets store will fail to connect without it."
            )
        return v


class AuthSettings(BaseSettings):
    """Bearer token verification."""

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        extra="ignore"
    )

    jwt_secret: str = Field(
        ...,
        description="Shared secret (HS*) or PEM public key (RS*/ES*)"
    )
    jwt_algorithms: str = Field(
        default="HS256",
        description="Comma-separated list of accepted algorithms"
    )
    jwt_audience: Optional[str] = Field(
        default=None,
        description="Expected 'aud' claim, if any"
    )
    jwt_issuer: Optional[str] = Field(
        default=None,
        description="Expected 'iss' claim, if any"
    )
    leeway_seconds: int = Field(
        default=0,
        ge=0,
        description="Clock skew tolerated on exp/nbf"
    )

    @property
    def algorithms_list(self) -> list[str]:
        return [alg.strip() for alg in self.jwt_algorithms.split(",") if alg.strip()]


class AppSettings(BaseSettings):
    """
    Application-wide knobs: logging, page-size cap, validation
    thresholds and the size of derived views.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Runtime
    app_environment: str = Field(
        default="development",
        description="Deployment name attached to start-up logs"
    )
    debug_mode: bool = Field(
        default=False,
        description="Force DEBUG logging regardless of log_level"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Pagination
    max_limit_per_page: int = Field(
        default=100,
        ge=1,
        description="Largest page size a caller may request"
    )

    # Validation thresholds
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future a transaction date can be"
    )

    # Derived views
    summary_size: int = Field(
        default=4,
        ge=1,
        description="How many budgets/incomes a summary lists"
    )
    latest_transactions_count: int = Field(
        default=3,
        ge=0,
        description="Transactions attached to each budget/income in list views"
    )


class Settings(BaseSettings):
    """
    Entry point for every settings section.

    Sections are built on access, so a process that never touches
    Google Sheets does not need its variables set.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Process-wide settings.

    Cached; tests call get_settings.cache_clear() after changing the
    environment.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Check each settings section can be built.

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for every section that failed.
    Google Sheets is only checked when it is the selected backend.
    """
    results = {}

    settings = get_settings()

    sections = ["app", "storage", "auth"]
    try:
        if settings.storage.backend == "google_sheets":
            sections.append("google_sheets")
    except Exception:
        # Reported below under "storage"
        pass

    for name in sections:
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
