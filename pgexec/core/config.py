"""
Runtime settings for pgexec.

Read from ``PGEXEC_*`` environment variables (or a local ``.env``). Connection
coordinates are not settings: they come from the command line.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PGEXEC_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    LOG_LEVEL: str = "WARNING"

    # Seconds; passed to libpq as connect_timeout.
    CONNECT_TIMEOUT: int = 10
    # Seconds; None or 0 = server default (no per-session statement_timeout).
    STATEMENT_TIMEOUT: float | None = None
    APPLICATION_NAME: str = "pgexec"


settings = Settings()  # type: ignore
