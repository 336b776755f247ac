"""Publication gate for listings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from propmatch.core.config import get_config
from propmatch.core.exceptions import ValidationError
from propmatch.models import Property
from propmatch.models.base import as_utc, utcnow
from propmatch.models.enums import MATCHABLE_PROPERTY_STATUSES
from propmatch.services.base_service import BaseService
from propmatch.services.quality_service import QualityService
from propmatch.utils.geo import is_valid_coordinate

logger = logging.getLogger(__name__)

ACTION_PROPERTY_PUBLISHED = "PROPERTY_PUBLISHED"
ACTION_PROPERTY_UNPUBLISHED = "PROPERTY_UNPUBLISHED"


@dataclass
class PublicationCheck:
    valid: bool
    errors: list[str] = field(default_factory=list)
    quality_score: int | None = None


class PublicationService(BaseService):
    def __init__(self, db=None, audit=None, quality: QualityService | None = None, min_quality_score: int | None = None):
        super().__init__(db, audit)
        self.quality = quality or QualityService(self.db, self.audit)
        self.min_quality_score = (
            min_quality_score if min_quality_score is not None else get_config().PUBLICATION_MIN_QUALITY_SCORE
        )

    def validate_publication_requirements(self, property_id: int) -> PublicationCheck:
        prop = self.quality.require_property(property_id)
        errors: list[str] = []

        if not (prop.title or "").strip():
            errors.append("Title is required")
        if not (prop.description or "").strip():
            errors.append("Description is required")
        if not (prop.address or "").strip():
            errors.append("Address is required")
        if not any(item.is_primary for item in prop.live_media):
            errors.append("A primary photo is required")
        if not is_valid_coordinate(prop.latitude, prop.longitude):
            errors.append("Geolocation (latitude/longitude) is required")
        if prop.price is None or prop.price <= 0:
            errors.append("A positive price is required")
        if prop.status not in MATCHABLE_PROPERTY_STATUSES:
            errors.append(f"Status {prop.status.value} cannot be published")

        latest = self.quality.get_latest(property_id)
        if latest is None or as_utc(latest.calculated_at) < prop.last_modified_at:
            latest = self.quality.calculate_and_store(property_id)
        if latest.score < self.min_quality_score:
            errors.append(f"Quality score {latest.score} is below the minimum of {self.min_quality_score}")

        return PublicationCheck(valid=not errors, errors=errors, quality_score=latest.score)

    def publish_property(self, property_id: int, tenant_id: int | None = None, actor_user_id: int | None = None) -> Property:
        check = self.validate_publication_requirements(property_id)
        if not check.valid:
            logger.info(
                "publication.rejected",
                extra={"event": "publication.rejected", "property_id": property_id, "errors": check.errors},
            )
            raise ValidationError("Property cannot be published: " + "; ".join(check.errors))

        prop = self.quality.require_property(property_id)
        if not prop.is_published:
            prop.is_published = True
            prop.published_at = utcnow()
            self.commit()
            self.db.refresh(prop)

        logger.info("publication.published", extra={"event": "publication.published", "property_id": property_id})
        self._audit(
            ACTION_PROPERTY_PUBLISHED,
            "property",
            property_id,
            tenant_id=tenant_id if tenant_id is not None else prop.tenant_id,
            actor_user_id=actor_user_id,
            payload={"quality_score": check.quality_score},
        )
        return prop

    def unpublish_property(self, property_id: int, tenant_id: int | None = None, actor_user_id: int | None = None) -> Property:
        prop = self.quality.require_property(property_id)
        if prop.is_published:
            prop.is_published = False
            prop.published_at = None
            self.commit()
            self.db.refresh(prop)

        logger.info("publication.unpublished", extra={"event": "publication.unpublished", "property_id": property_id})
        self._audit(
            ACTION_PROPERTY_UNPUBLISHED,
            "property",
            property_id,
            tenant_id=tenant_id if tenant_id is not None else prop.tenant_id,
            actor_user_id=actor_user_id,
            payload={},
        )
        return prop
