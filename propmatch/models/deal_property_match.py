"""Deal/property shortlist model module."""

from __future__ import annotations

from sqlalchemy import JSON, Enum, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propmatch.models.base import AuditMixin, Base, TenantScopedMixin
from propmatch.models.enums import MatchStatus


class DealPropertyMatch(Base, AuditMixin, TenantScopedMixin):
    __tablename__ = "deal_property_matches"
    __table_args__ = (
        UniqueConstraint("tenant_id", "deal_id", "property_id", name="uq_deal_property_matches_tenant_deal_property"),
        Index("idx_deal_property_matches_tenant_deal", "tenant_id", "deal_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    deal_id: Mapped[int] = mapped_column(ForeignKey("deals.id", ondelete="CASCADE"), nullable=False)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    source_owner_contact_id: Mapped[int | None] = mapped_column(Integer)
    match_score: Mapped[int | None] = mapped_column(Integer)
    match_explanation: Mapped[dict | None] = mapped_column(JSON)
    status: Mapped[MatchStatus] = mapped_column(Enum(MatchStatus), default=MatchStatus.SHORTLISTED, nullable=False)

    deal = relationship("Deal", back_populates="property_matches")
    property = relationship("Property")
