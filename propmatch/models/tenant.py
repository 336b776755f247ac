"""Agency (tenant) owning deals, shortlists and tenant-owned listings."""

from __future__ import annotations

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propmatch.models.base import AuditMixin, Base


class Tenant(Base, AuditMixin):
    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_key: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    deals = relationship("Deal", back_populates="tenant")
    mandates = relationship("PropertyMandate", back_populates="tenant")
