from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_RATE_PROVIDERS = {"static", "fxratesapi"}


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic-settings rules (e.g. APP_NAME,
    DEBUG, DATA_DIR, RATE_PROVIDER, RATES_STALE_AFTER_SECONDS).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "TripWallet"
    debug: bool = False
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "tripwallet.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided

    # Exchange rates
    # Allowed: 'static' (built-in fixed table, offline), 'fxratesapi' (api.fxratesapi.com)
    rate_provider: str = "fxratesapi"
    rates_api_url: str = "https://api.fxratesapi.com/latest"
    http_timeout_seconds: float = 5.0
    http_retries: int = 2
    rates_stale_after_seconds: int = 24 * 60 * 60
    auto_refresh_rates: bool = True

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        if self.rate_provider not in ALLOWED_RATE_PROVIDERS:
            raise ValueError(
                f"Unsupported rate_provider '{self.rate_provider}'. Allowed: {ALLOWED_RATE_PROVIDERS}"
            )
        if self.rates_stale_after_seconds <= 0:
            raise ValueError("rates_stale_after_seconds must be positive")

    @property
    def rates_stale_after_ns(self) -> int:
        return self.rates_stale_after_seconds * 10**9


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
