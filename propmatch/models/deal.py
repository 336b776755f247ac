"""Deal model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propmatch.models.base import AuditMixin, Base, TenantScopedMixin
from propmatch.models.enums import DealStage, DealType


class Deal(Base, AuditMixin, TenantScopedMixin):
    __tablename__ = "deals"
    __table_args__ = (
        Index("idx_deals_tenant_stage", "tenant_id", "stage"),
        Index("idx_deals_tenant_contact", "tenant_id", "contact_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    contact_id: Mapped[int | None] = mapped_column(Integer)
    type: Mapped[DealType] = mapped_column(Enum(DealType), default=DealType.PURCHASE, nullable=False)
    stage: Mapped[DealStage] = mapped_column(Enum(DealStage), default=DealStage.NEW, nullable=False)
    budget_min: Mapped[float | None] = mapped_column(Numeric(14, 2))
    budget_max: Mapped[float | None] = mapped_column(Numeric(14, 2))
    location_zone: Mapped[str | None] = mapped_column(String(255))
    criteria_json: Mapped[dict | None] = mapped_column(JSON)
    expected_value: Mapped[float | None] = mapped_column(Numeric(14, 2))
    probability: Mapped[int | None] = mapped_column(Integer)
    assigned_to_user_id: Mapped[int | None] = mapped_column(Integer)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    closed_reason: Mapped[str | None] = mapped_column(Text)

    # Every flushed UPDATE is issued as "... WHERE version = :old" and bumps
    # the counter by one; a zero-row update raises StaleDataError.
    __mapper_args__ = {"version_id_col": version}

    tenant = relationship("Tenant", back_populates="deals")
    property_matches = relationship("DealPropertyMatch", back_populates="deal")
