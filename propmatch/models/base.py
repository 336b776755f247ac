"""Declarative base, timestamps and row-scoping helpers for the matching schema."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Base(DeclarativeBase):
    pass


class AuditMixin:
    """Row timestamps plus soft deletion; deleted rows are never matched or listed."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @classmethod
    def live(cls):
        """Filter clause selecting rows that are not soft-deleted."""
        return cls.deleted_at.is_(None)

    def touch(self) -> None:
        # Guarantees a dirty row, so versioned tables bump even on no-op updates.
        self.updated_at = utcnow()


class TenantScopedMixin:
    tenant_id: Mapped[int] = mapped_column(ForeignKey("tenants.id", ondelete="RESTRICT"), nullable=False, index=True)

    @classmethod
    def owned_by(cls, tenant_id: int):
        return cls.tenant_id == tenant_id
