"""Bring the configured database up to the latest schema revision."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy import inspect

import propmatch.database.db as db_module
from propmatch.core.startup import bootstrap
from propmatch.models import Base

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]
BASELINE_REVISION = "20260301_0001"


def build_alembic_config(database_url: str) -> AlembicConfig:
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    # Logging is owned by configure_logging(); keep alembic's fileConfig out of it.
    cfg.attributes["configure_logger"] = False
    return cfg


def _requires_baseline_stamp() -> bool:
    """True when tables were created by create_all() without alembic tracking."""
    table_names = set(inspect(db_module.get_engine()).get_table_names())
    model_tables = set(Base.metadata.tables.keys())
    return model_tables.issubset(table_names) and "alembic_version" not in table_names


def _sqlite_db_path(database_url: str) -> Path | None:
    prefix = "sqlite:///"
    if not database_url.startswith(prefix):
        return None
    raw = database_url[len(prefix) :]
    if raw in {":memory:", ""}:
        return None
    path = Path(raw)
    if not path.is_absolute():
        path = (PROJECT_ROOT / path).resolve()
    return path


def _reset_sqlite_db(database_url: str) -> Path | None:
    db_path = _sqlite_db_path(database_url)
    if not db_path or not db_path.exists():
        db_module.reset_engine(database_url)
        return None

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_name(f"{db_path.stem}.backup_{timestamp}{db_path.suffix}")
    db_module.get_engine().dispose()
    db_path.replace(backup_path)
    db_module.reset_engine(database_url)
    return backup_path


def upgrade_database(database_url: str) -> None:
    """Run migrations to head; an unusable local SQLite file is backed up and rebuilt."""
    try:
        alembic_cfg = build_alembic_config(database_url)
        if _requires_baseline_stamp():
            command.stamp(alembic_cfg, BASELINE_REVISION)
            logger.info(
                "database.schema.stamped",
                extra={"event": "database.schema.stamped", "revision": BASELINE_REVISION},
            )
        command.upgrade(alembic_cfg, "head")
    except Exception as exc:
        if not database_url.startswith("sqlite:///"):
            raise
        backup_path = _reset_sqlite_db(database_url)
        logger.warning(
            "database.sqlite.reset_for_schema_mismatch",
            extra={
                "event": "database.sqlite.reset_for_schema_mismatch",
                "database_url": database_url,
                "backup_path": str(backup_path) if backup_path else None,
                "reason": str(exc),
            },
        )
        command.upgrade(build_alembic_config(database_url), "head")

    logger.info("database.schema.ready", extra={"event": "database.schema.ready", "database_url": database_url})


def init_db() -> None:
    bootstrap()
    upgrade_database(db_module.DATABASE_URL)


if __name__ == "__main__":
    init_db()
