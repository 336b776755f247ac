"""Shared service base with robust session lifecycle behavior."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from propmatch.audit import AuditEvent, AuditSink, NullAuditSink
from propmatch.core.exceptions import DatabaseError
from propmatch.core.logging import LogContext
from propmatch.database import db as database

logger = logging.getLogger(__name__)


class BaseService:
    """Base class for services that operate on a SQLAlchemy session."""

    def __init__(self, db: Session | None = None, audit: AuditSink | None = None) -> None:
        self.db = db or database.SessionLocal()
        self.audit = audit or NullAuditSink()

    def commit(self) -> None:
        """Commit current transaction and rollback on failure.

        Version conflicts propagate as ``StaleDataError`` for the caller to
        translate; any other driver or ORM failure becomes ``DatabaseError``.
        """
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("database.commit_failed", extra={"event": "database.commit_failed"})
            raise DatabaseError("Database operation failed") from exc
        except Exception:
            self.db.rollback()
            raise

    def rollback(self) -> None:
        self.db.rollback()

    def close(self) -> None:
        self.db.close()

    def _audit(
        self,
        action_key: str,
        entity_type: str,
        entity_id: Any,
        *,
        tenant_id: int | None = None,
        actor_user_id: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        """Hand an event to the audit sink; failures never reach the caller."""
        event = AuditEvent(
            action_key=action_key,
            entity_type=entity_type,
            entity_id=str(entity_id),
            tenant_id=tenant_id,
            actor_user_id=actor_user_id,
            payload=payload or {},
        )
        try:
            self.audit.record(event)
        except Exception:
            context = LogContext(tenant_id, actor_user_id, entity_type, event.entity_id)
            logger.exception("audit.record_failed", extra=context.as_extra("audit.record_failed", action_key=action_key))

    def __enter__(self) -> "BaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        self.close()
