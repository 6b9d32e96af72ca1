# quoting/core/settings.py
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PRICING_CONFIG = Path(__file__).resolve().parents[1] / "config" / "pricing.yaml"


class Settings(BaseSettings):
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # --- Pricing ---
    CURRENCY: str = "EUR"
    PRICING_CONFIG_PATH: str = str(DEFAULT_PRICING_CONFIG)
    DEFAULT_SCENARIO_ID: str = "STANDARD"
    SCENARIO_WORKERS: int = 0  # 0 = sequential scenario evaluation

    # --- Price signature ---
    PRICE_SIGNATURE_SECRET: Optional[str] = None
    # Retired secrets still accepted by verify (JSON list in env)
    PRICE_SIGNATURE_PREVIOUS_SECRETS: List[str] = []
    PRICE_SIGNATURE_MAX_AGE_HOURS: float = 24
    PRICE_SIGNATURE_CLOCK_SKEW_SECONDS: int = 60

    # --- Payment fallback ---
    # Pick the first variant when neither the requested nor the default
    # scenario exists in a payment recomputation.
    FALLBACK_ALLOW_FIRST_AVAILABLE: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() in ("prod", "production")


settings = Settings()  # reads .env
