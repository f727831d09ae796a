"""Configuration for the trust engine, its HTTP server, and the CLI.

Settings are read from ``CAULDRON_TRUST_*`` environment variables and an
optional ``.env`` file. Scoring constants nest under ``scoring``; override
them with ``CAULDRON_TRUST_SCORING__TASK_COMPLETION_XP=20`` and the like.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cauldron_trust.scoring.policy import ScoringPolicy

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CAULDRON_TRUST_",
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    database_url: str = "sqlite:///./cauldron_trust.db"
    echo_sql: bool = False

    # Audit trail
    audit_log_path: Optional[Path] = None

    # HTTP server
    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=0, le=65535)

    # Access control bootstrap: agent_id -> owner user_id, user_id -> role names
    agents: dict[str, str] = Field(default_factory=dict)
    user_roles: dict[str, list[str]] = Field(default_factory=dict)

    # Logging
    log_level: str = "INFO"

    scoring: ScoringPolicy = Field(default_factory=ScoringPolicy)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level


def load_settings(**overrides: object) -> Settings:
    """Build :class:`Settings` from the environment, applying *overrides*.

    Overrides whose value is None are ignored so that unset CLI options
    fall through to the environment.
    """
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def configure_logging(level: str) -> None:
    """Configure root logging for an entry point."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = ["Settings", "configure_logging", "load_settings"]
