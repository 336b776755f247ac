"""Property quality score snapshot model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propmatch.models.base import Base, utcnow


class PropertyQualityScore(Base):
    """Append-only; the most recent row is the current score."""

    __tablename__ = "property_quality_scores"
    __table_args__ = (Index("idx_property_quality_scores_property_time", "property_id", "calculated_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    suggestions: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    property = relationship("Property", back_populates="quality_scores")
