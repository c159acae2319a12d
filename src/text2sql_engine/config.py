"""Application settings loaded from environment variables.

Every variable carries the ``T2S_`` prefix, e.g. ``T2S_DEFAULT_DIALECT=pgsql``.
Other modules should call ``get_settings()`` rather than reading the
environment directly.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine-wide configuration backed by environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="T2S_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- Routing / execution ------------------------------------------------

    default_dialect: str = "mysql"
    """Dialect used when a caller gives no hint (mysql / pgsql / mongo)."""

    default_max_rows: int = Field(200, ge=0)
    """Row cap applied to every statement."""

    execution_max_repairs: int = Field(1, ge=0)
    """Heuristic repair-and-retry rounds after a backend failure."""

    # -- Orchestration ------------------------------------------------------

    max_attempts: int = Field(3, ge=1)
    """Generate/check/execute attempts per question."""

    generator_mode: str = "llm"
    """Primary generator: ``llm`` or ``rules``."""

    generation_timeout_seconds: float = 60.0
    generation_max_retries: int = 3
    generation_backoff_seconds: float = 1.0
    generation_backoff_max_seconds: float = 8.0

    # -- Relational backends --------------------------------------------------

    finance_mysql_url: str = ""
    finance_pgsql_url: str = ""
    healthcare_mysql_url: str = ""
    healthcare_pgsql_url: str = ""

    pool_size: int = Field(5, ge=1)
    pool_recycle_seconds: int = 1800

    # -- Document store -----------------------------------------------------

    finance_mongo_url: str = ""
    finance_mongo_username: str = ""
    finance_mongo_password: str = ""
    healthcare_mongo_url: str = ""
    healthcare_mongo_username: str = ""
    healthcare_mongo_password: str = ""

    # -- Observability --------------------------------------------------------

    log_level: str = "INFO"
    log_format: str = ""
    environment: str = "development"
    otlp_endpoint: str = "disabled"


@lru_cache
def get_settings() -> Settings:
    """Return the cached process-wide settings."""
    return Settings()
