"""Property type template model module."""

from __future__ import annotations

from sqlalchemy import JSON, Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from propmatch.models.base import AuditMixin, Base


class PropertyTypeTemplate(Base, AuditMixin):
    __tablename__ = "property_type_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_type: Mapped[str] = mapped_column(String(60), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    field_definitions: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
