"""SQLAlchemy model package for the tenant-aware matching schema."""

from propmatch.models.audit_log import AuditLog
from propmatch.models.base import Base
from propmatch.models.deal import Deal
from propmatch.models.deal_property_match import DealPropertyMatch
from propmatch.models.enums import (
    DealStage,
    DealType,
    FurnishingStatus,
    MatchStatus,
    OwnershipType,
    PropertyStatus,
)
from propmatch.models.property import Property, PropertyMandate, PropertyMedia
from propmatch.models.property_template import PropertyTypeTemplate
from propmatch.models.quality_score import PropertyQualityScore
from propmatch.models.tenant import Tenant

__all__ = [
    "AuditLog",
    "Base",
    "Deal",
    "DealPropertyMatch",
    "DealStage",
    "DealType",
    "FurnishingStatus",
    "MatchStatus",
    "OwnershipType",
    "Property",
    "PropertyMandate",
    "PropertyMedia",
    "PropertyQualityScore",
    "PropertyStatus",
    "PropertyTypeTemplate",
    "Tenant",
]
