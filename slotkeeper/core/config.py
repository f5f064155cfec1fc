# slotkeeper/core/config.py
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parents[2]

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = _PROJECT_ROOT / ".env"
    logger.info(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    """Runtime configuration, read from the environment (and .env)."""

    environment: str = Field(default="development", description="deployment environment")
    log_level: str = Field(default="INFO")

    database_url: str = Field(
        default="sqlite+pysqlite:///./slotkeeper.db",
        description="SQLAlchemy URL of the primary database",
    )
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Hold handling
    hold_timeout_minutes: int = Field(
        default=10,
        ge=1,
        description="Age after which an unpaid temp/on_hold reservation no longer blocks a slot",
    )
    reaper_cutoff_minutes: int = Field(
        default=15,
        ge=1,
        description="Default age after which the reaper cancels unpaid holds",
    )
    reaper_interval_minutes: int = Field(default=5, ge=1)
    reaper_secret: SecretStr = Field(default=SecretStr(""))

    # Checkout provider
    checkout_api_url: str = Field(default="https://checkout.example.com/api/v1")
    checkout_api_key: SecretStr = Field(default=SecretStr(""))
    checkout_webhook_secret: SecretStr = Field(default=SecretStr(""))
    checkout_timeout_seconds: float = Field(default=15.0, gt=0)
    checkout_return_url: str = Field(default="http://localhost:3000/checkout/return")

    # Invoicing
    invoice_prefix: str = Field(default="INV")
    invoice_due_days: int = Field(default=14, ge=0)
    default_currency: str = Field(default="SEK", min_length=3, max_length=3)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in {"prod", "production"}


settings = Settings()
