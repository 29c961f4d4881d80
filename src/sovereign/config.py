"""Runtime configuration for the Sovereign simulation core."""

from __future__ import annotations

from dataclasses import replace
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sovereign.domain.rules_config import DEFAULT_RULES, RulesConfig


class Settings(BaseSettings):
    """Application settings read from the environment (``SOVEREIGN_*``) or ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SOVEREIGN_",
        extra="ignore",
    )

    DATABASE_URL: str = Field(
        default="sqlite:///sovereign.db", description="SQLAlchemy database URL"
    )
    DATABASE_ECHO: bool = Field(default=False, description="Echo SQL statements to the log")
    DATABASE_POOL_SIZE: int = Field(default=5, ge=1)
    DATABASE_MAX_OVERFLOW: int = Field(default=10, ge=0)
    DATABASE_POOL_RECYCLE: int = Field(default=1800, description="Seconds before recycling")
    DATABASE_POOL_TIMEOUT: int = Field(default=30, ge=1)

    world_tick_interval_seconds: float = Field(
        default=30.0,
        description="Real-time seconds between scheduled world ticks",
        gt=0.0,
    )
    log_level: str = Field(default="INFO", description="Root log level for the CLI")
    strict_invariants: bool = Field(
        default=True,
        description=(
            "Raise on combat invariant violations instead of clamping the offending "
            "values to zero"
        ),
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()


def rules_from_settings(settings: Settings | None = None) -> RulesConfig:
    """Default rule set with the runtime toggles from ``settings`` applied."""

    settings = settings or get_settings()
    return replace(
        DEFAULT_RULES,
        combat=replace(DEFAULT_RULES.combat, strict_invariants=settings.strict_invariants),
    )
