"""
Configuration Management for Church Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage credentials and ledger conventions (currency, the legacy
budget year) are validated once and shared by every component.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets document store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet holding the ledger"
    )

    # One worksheet per collection
    accounts_sheet_name: str = Field(
        default="Accounts",
        description="Worksheet for the chart of accounts"
    )
    income_sources_sheet_name: str = Field(
        default="IncomeSources",
        description="Worksheet for budgeted income sources"
    )
    expense_sources_sheet_name: str = Field(
        default="ExpenseSources",
        description="Worksheet for budgeted expense sources"
    )
    income_records_sheet_name: str = Field(
        default="IncomeRecords",
        description="Worksheet for income transactions (tithes included)"
    )
    expense_records_sheet_name: str = Field(
        default="ExpenseRecords",
        description="Worksheet for expense transactions"
    )
    members_sheet_name: str = Field(
        default="Members",
        description="Worksheet for church members"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    church_name: str = Field(
        default="Church Ledger",
        description="Name printed on report headers"
    )
    currency: str = Field(
        default="XAF",
        min_length=3,
        max_length=3,
        description="ISO currency code used when formatting amounts"
    )

    # Budget conventions
    legacy_budget_year: Optional[int] = Field(
        default=2024,
        ge=1900,
        le=2200,
        description=(
            "Only year for which a source's single-value legacy budget is "
            "used when its year map has no entry. Unset to apply it to every year."
        )
    )
    dashboard_years: int = Field(
        default=5,
        ge=1,
        le=30,
        description="How many past years the dashboard year selector offers"
    )

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so the app can run
    # without storage credentials (in-memory mode).

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks and the settings page.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
