"""Application settings and configuration."""

from decimal import Decimal
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory based on platform."""
    return Path.home() / ".cascade-ledger"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CASCADE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Cascade Ledger"
    app_version: str = "0.1.0"

    # Data directory (all app data lives here)
    data_dir: Optional[Path] = None

    # Database URL (derived from data_dir if not set explicitly)
    database_url: Optional[str] = None

    # Storage boundary
    storage_timeout_seconds: float = 5.0

    log_level: str = "INFO"
    reconciliation_log_level: Optional[str] = None
    log_sql: bool = False

    # Journal
    rounding_epsilon: Decimal = Decimal("0.01")
    cash_ledger_account: str = "Cash USD"
    opening_balance_account: str = "Opening Balance Equity"

    # Pricing
    cash_equivalent_symbols: set[str] = {"SPAXX", "VMMXX", "SWVXX"}

    # Reconstruction
    quantity_dust: Decimal = Decimal("0.0001")
    value_dust: Decimal = Decimal("0.01")
    first_weekday: int = 0  # Monday
    timeline_workers: Optional[int] = None

    # Reconciliation
    balance_tolerance: Decimal = Decimal("0.01")
    reconcile_max_iterations: int = 3
    min_fix_confidence: Decimal = Decimal("0.95")
    severity_critical_pct: Decimal = Decimal("10")
    severity_high_pct: Decimal = Decimal("5")
    severity_medium_pct: Decimal = Decimal("1")

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "ledger.db"
        return f"sqlite:///{db_path}"

    def get_cash_equivalents(self) -> frozenset[str]:
        """Normalized cash-equivalent symbols."""
        return frozenset(s.strip().upper() for s in self.cash_equivalent_symbols)

    def get_severity_thresholds(self) -> tuple[Decimal, Decimal, Decimal]:
        """Relative (percent) thresholds for critical, high and medium."""
        return (
            self.severity_critical_pct,
            self.severity_high_pct,
            self.severity_medium_pct,
        )


# Settings instance for the process edge (API dependencies, entrypoint)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Replace the settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
