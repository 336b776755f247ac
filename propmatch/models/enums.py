"""Canonical enum values for the matching schema."""

from __future__ import annotations

import enum


class DealStage(str, enum.Enum):
    NEW = "NEW"
    QUALIFIED = "QUALIFIED"
    VISIT = "VISIT"
    NEGOTIATION = "NEGOTIATION"
    WON = "WON"
    LOST = "LOST"


TERMINAL_DEAL_STAGES = frozenset({DealStage.WON, DealStage.LOST})


class DealType(str, enum.Enum):
    PURCHASE = "PURCHASE"
    RENTAL = "RENTAL"


class MatchStatus(str, enum.Enum):
    SHORTLISTED = "SHORTLISTED"
    PROPOSED = "PROPOSED"
    VISITED = "VISITED"
    SELECTED = "SELECTED"
    REJECTED = "REJECTED"


class PropertyStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    UNDER_REVIEW = "UNDER_REVIEW"
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    UNDER_OFFER = "UNDER_OFFER"
    SOLD = "SOLD"
    RENTED = "RENTED"
    ARCHIVED = "ARCHIVED"


# Statuses a property can be matched or published in.
MATCHABLE_PROPERTY_STATUSES = (
    PropertyStatus.AVAILABLE,
    PropertyStatus.RESERVED,
    PropertyStatus.UNDER_OFFER,
)


class OwnershipType(str, enum.Enum):
    TENANT = "TENANT"
    CLIENT = "CLIENT"


class FurnishingStatus(str, enum.Enum):
    FURNISHED = "FURNISHED"
    SEMI_FURNISHED = "SEMI_FURNISHED"
    UNFURNISHED = "UNFURNISHED"
