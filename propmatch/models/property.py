"""Property listing model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum, Float, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propmatch.models.base import AuditMixin, Base, as_utc
from propmatch.models.enums import FurnishingStatus, OwnershipType, PropertyStatus


class Property(Base, AuditMixin):
    """Listing owned either by a tenant or by a client under mandate."""

    __tablename__ = "properties"
    __table_args__ = (
        Index("idx_properties_tenant_status", "tenant_id", "status"),
        Index("idx_properties_geo", "latitude", "longitude"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int | None] = mapped_column(ForeignKey("tenants.id", ondelete="RESTRICT"), index=True)
    owner_user_id: Mapped[int | None] = mapped_column(Integer)
    ownership_type: Mapped[OwnershipType] = mapped_column(
        Enum(OwnershipType), default=OwnershipType.TENANT, nullable=False
    )
    property_type: Mapped[str] = mapped_column(String(60), nullable=False)
    status: Mapped[PropertyStatus] = mapped_column(Enum(PropertyStatus), default=PropertyStatus.DRAFT, nullable=False)
    title: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    address: Mapped[str | None] = mapped_column(String(500))
    location_zone: Mapped[str | None] = mapped_column(String(255))
    price: Mapped[float | None] = mapped_column(Numeric(14, 2))
    surface_area: Mapped[float | None] = mapped_column(Numeric(10, 2))
    rooms: Mapped[int | None] = mapped_column(Integer)
    bedrooms: Mapped[int | None] = mapped_column(Integer)
    furnishing_status: Mapped[FurnishingStatus | None] = mapped_column(Enum(FurnishingStatus))
    type_specific_data: Mapped[dict | None] = mapped_column(JSON)
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    quality_score: Mapped[int | None] = mapped_column(Integer)

    media = relationship(
        "PropertyMedia",
        back_populates="property",
        order_by="PropertyMedia.sort_order",
        cascade="all, delete-orphan",
    )
    mandates = relationship("PropertyMandate", back_populates="property", cascade="all, delete-orphan")
    quality_scores = relationship(
        "PropertyQualityScore",
        back_populates="property",
        order_by="PropertyQualityScore.id",
        cascade="all, delete-orphan",
    )

    @property
    def live_media(self) -> list["PropertyMedia"]:
        return [item for item in self.media if item.deleted_at is None]

    @property
    def last_modified_at(self) -> datetime:
        """Latest change to the listing or any of its media, deleted media included."""
        stamps = [self.updated_at, *(item.updated_at for item in self.media)]
        return max(as_utc(stamp) for stamp in stamps if stamp is not None)


class PropertyMedia(Base, AuditMixin):
    __tablename__ = "property_media"
    __table_args__ = (Index("idx_property_media_property", "property_id", "sort_order"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    media_type: Mapped[str] = mapped_column(String(30), default="photo", nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    property = relationship("Property", back_populates="media")


class PropertyMandate(Base, AuditMixin):
    __tablename__ = "property_mandates"
    __table_args__ = (Index("idx_property_mandates_tenant_property", "tenant_id", "property_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(ForeignKey("tenants.id", ondelete="RESTRICT"), nullable=False)
    property_id: Mapped[int] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    property = relationship("Property", back_populates="mandates")
    tenant = relationship("Tenant", back_populates="mandates")
