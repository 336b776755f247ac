"""Configuration module for the propmatch core."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from propmatch.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    LOG_LEVEL: str
    LOG_FILE: str
    MATCH_DEFAULT_THRESHOLD: int
    MATCH_DEFAULT_LIMIT: int
    MATCH_SCORING_WORKERS: int
    AUDIT_ENABLED: bool
    AUDIT_QUEUE_MAXSIZE: int
    AUDIT_FLUSH_THRESHOLD: int
    AUDIT_FLUSH_INTERVAL_SECONDS: float
    PUBLICATION_MIN_QUALITY_SCORE: int

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))

    config = Config(
        APP_NAME="propmatch",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./propmatch.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(
            os.getenv("DB_CONNECTIVITY_REQUIRED"), default=(resolved_env == "production")
        ),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
        MATCH_DEFAULT_THRESHOLD=int(os.getenv("MATCH_DEFAULT_THRESHOLD", "40")),
        MATCH_DEFAULT_LIMIT=int(os.getenv("MATCH_DEFAULT_LIMIT", "10")),
        MATCH_SCORING_WORKERS=int(os.getenv("MATCH_SCORING_WORKERS", "1")),
        AUDIT_ENABLED=_as_bool(os.getenv("AUDIT_ENABLED"), default=True),
        AUDIT_QUEUE_MAXSIZE=int(os.getenv("AUDIT_QUEUE_MAXSIZE", "10000")),
        AUDIT_FLUSH_THRESHOLD=int(os.getenv("AUDIT_FLUSH_THRESHOLD", "100")),
        AUDIT_FLUSH_INTERVAL_SECONDS=float(os.getenv("AUDIT_FLUSH_INTERVAL_SECONDS", "5")),
        PUBLICATION_MIN_QUALITY_SCORE=int(os.getenv("PUBLICATION_MIN_QUALITY_SCORE", "50")),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2", "postgresql+psycopg"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if not 0 <= config.MATCH_DEFAULT_THRESHOLD <= 100:
        raise ConfigurationError("MATCH_DEFAULT_THRESHOLD must be between 0 and 100.")
    if config.MATCH_DEFAULT_LIMIT < 1:
        raise ConfigurationError("MATCH_DEFAULT_LIMIT must be >= 1.")
    if config.MATCH_SCORING_WORKERS < 1:
        raise ConfigurationError("MATCH_SCORING_WORKERS must be >= 1.")
    if config.AUDIT_QUEUE_MAXSIZE < 1:
        raise ConfigurationError("AUDIT_QUEUE_MAXSIZE must be >= 1.")
    if config.AUDIT_FLUSH_THRESHOLD < 1:
        raise ConfigurationError("AUDIT_FLUSH_THRESHOLD must be >= 1.")
    if config.AUDIT_FLUSH_INTERVAL_SECONDS <= 0:
        raise ConfigurationError("AUDIT_FLUSH_INTERVAL_SECONDS must be > 0.")
    if not 0 <= config.PUBLICATION_MIN_QUALITY_SCORE <= 100:
        raise ConfigurationError("PUBLICATION_MIN_QUALITY_SCORE must be between 0 and 100.")
    if config.is_production and "change_me" in config.DATABASE_URL.lower():
        raise ConfigurationError("Production DATABASE_URL uses placeholder credentials.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
