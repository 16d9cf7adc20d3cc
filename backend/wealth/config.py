"""Application configuration."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = "sqlite:///./wealth.db"

    # Reporting
    reporting_currency: str = "BRL"

    # Currency rate feed (quotes foreign units per 1 reporting unit)
    exchange_rate_api_url: str = "https://api.exchangerate-api.com/v4/latest"
    rate_refresh_seconds: int = 300
    rate_stale_after_seconds: int = 900
    materiality_threshold: Decimal = Decimal("0.0001")

    # Benchmark feed (Banco Central SGS)
    benchmark_api_url: str = "https://api.bcb.gov.br/dados/serie"
    rate_a_series: int = 12  # CDI, daily
    rate_b_series: int = 433  # IPCA, monthly
    rate_a_window: int = 252
    rate_b_window: int = 12
    fallback_rate_a_12m: Decimal = Decimal("14.96")
    fallback_rate_b_12m: Decimal = Decimal("4.44")

    # Deposit insurance (FGC)
    insurance_limit_per_issuer: Decimal = Decimal("250000")
    insurance_total_limit: Decimal = Decimal("1000000")

    # Snapshot batch
    snapshot_max_workers: int = 4

    # Quote analysis feed
    quote_symbol_suffix: str = ".SA"

    # Application
    log_level: str = "INFO"
    debug: bool = True

    # CORS
    allowed_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )


settings = Settings()
