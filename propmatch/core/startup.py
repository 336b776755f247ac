"""Startup validation and bootstrap helpers."""

from __future__ import annotations

import logging

from sqlalchemy import inspect

from propmatch.core.config import get_config
from propmatch.core.logging_config import configure_logging
from propmatch.database.db import get_engine, verify_database_connection

logger = logging.getLogger(__name__)


def missing_tables() -> list[str]:
    """Model tables absent from the connected database."""
    from propmatch.models import Base

    present = set(inspect(get_engine()).get_table_names())
    return sorted(set(Base.metadata.tables) - present)


def validate_startup_config() -> None:
    """Fail fast on an unreachable required database; warn on weaker problems."""
    config = get_config()
    database_ok = verify_database_connection()
    if not database_ok and config.DB_CONNECTIVITY_REQUIRED:
        raise RuntimeError("Database connectivity check failed.")
    if not database_ok:
        logger.warning(
            "startup.database.connectivity_optional_failed",
            extra={"event": "startup.database.connectivity_optional_failed"},
        )
    else:
        absent = missing_tables()
        if absent:
            logger.warning(
                "startup.database.schema_incomplete",
                extra={"event": "startup.database.schema_incomplete", "missing_tables": absent},
            )

    backend = get_engine().url.get_backend_name()
    if config.is_production and backend == "sqlite":
        logger.warning("startup.production.sqlite_detected", extra={"event": "startup.production.sqlite_detected"})

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_backend": backend,
            "audit_enabled": config.AUDIT_ENABLED,
            "match_threshold": config.MATCH_DEFAULT_THRESHOLD,
            "match_limit": config.MATCH_DEFAULT_LIMIT,
            "scoring_workers": config.MATCH_SCORING_WORKERS,
        },
    )


def bootstrap() -> None:
    """Initialize logging and validate runtime configuration."""
    configure_logging()
    validate_startup_config()
