"""Client settings loaded from the environment.

Uses pydantic-settings for validation; values come from ``PGQ_*`` environment variables
or a ``.env`` file in the working directory.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the pgq client (DSN, pool size, ticker polling, logging)."""

    model_config = SettingsConfigDict(env_prefix="PGQ_", env_file=".env", extra="ignore")

    app_name: str = Field(default="PgQ Client")
    dsn: str | None = Field(default=None, description="PostgreSQL DSN")
    pool_min_size: int = Field(default=1, ge=0)
    pool_max_size: int = Field(default=4, ge=1)
    log_level: str = Field(default="WARNING")
    tick_poll_interval: float = Field(default=0.5, gt=0, description="Seconds between ticker polls")
    tick_timeout: float = Field(default=10.0, gt=0, description="Seconds to wait for a forced tick")
    retry_seconds: int = Field(default=601, ge=0, description="Delay before a failed event is redelivered")


def get_settings() -> Settings:
    """Return the loaded settings instance."""
    return Settings()
