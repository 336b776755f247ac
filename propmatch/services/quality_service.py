"""Listing quality scoring and snapshot history."""

from __future__ import annotations

import logging

from propmatch.core.exceptions import NotFoundError
from propmatch.models import Property, PropertyQualityScore, PropertyTypeTemplate
from propmatch.models.base import utcnow
from propmatch.scoring.quality import QualityResult, score_quality
from propmatch.services.base_service import BaseService

logger = logging.getLogger(__name__)


class PropertyTemplateService(BaseService):
    def get_template_by_type(self, property_type: str | None) -> PropertyTypeTemplate | None:
        if not property_type:
            return None
        return (
            self.db.query(PropertyTypeTemplate)
            .filter(
                PropertyTypeTemplate.property_type == property_type,
                PropertyTypeTemplate.is_active.is_(True),
                PropertyTypeTemplate.live(),
            )
            .first()
        )


class QualityService(BaseService):
    """Scores listings against their type template and keeps score history.

    Snapshots are append-only; the newest one is the listing's current score
    and is mirrored on ``Property.quality_score``.
    """

    def __init__(self, db=None, audit=None, templates: PropertyTemplateService | None = None) -> None:
        super().__init__(db, audit)
        self.templates = templates or PropertyTemplateService(self.db, self.audit)

    def calculate_quality_score(self, property_id: int) -> QualityResult:
        prop = self.require_property(property_id)
        template = self.templates.get_template_by_type(prop.property_type)
        if template is None:
            logger.debug(
                "quality.template_missing",
                extra={"event": "quality.template_missing", "property_type": prop.property_type},
            )
        return score_quality(prop, template)

    def calculate_and_store(self, property_id: int) -> PropertyQualityScore:
        result = self.calculate_quality_score(property_id)
        prop = self.require_property(property_id)

        now = utcnow()
        snapshot = PropertyQualityScore(
            property_id=prop.id,
            score=result.score,
            suggestions=list(result.suggestions),
            calculated_at=now,
        )
        prop.quality_score = result.score
        # Same instant as the snapshot, so mirroring the score does not make it look stale.
        prop.updated_at = now
        self.db.add(snapshot)
        self.commit()
        self.db.refresh(snapshot)

        logger.info(
            "quality.score_stored",
            extra={"event": "quality.score_stored", "property_id": prop.id, "score": result.score},
        )
        return snapshot

    def get_latest(self, property_id: int) -> PropertyQualityScore | None:
        self.require_property(property_id)
        return (
            self.db.query(PropertyQualityScore)
            .filter(PropertyQualityScore.property_id == property_id)
            .order_by(PropertyQualityScore.calculated_at.desc(), PropertyQualityScore.id.desc())
            .first()
        )

    def list_history(self, property_id: int) -> list[PropertyQualityScore]:
        """All snapshots, newest first."""
        self.require_property(property_id)
        return (
            self.db.query(PropertyQualityScore)
            .filter(PropertyQualityScore.property_id == property_id)
            .order_by(PropertyQualityScore.calculated_at.desc(), PropertyQualityScore.id.desc())
            .all()
        )

    def require_property(self, property_id: int) -> Property:
        prop = (
            self.db.query(Property)
            .filter(Property.id == property_id, Property.live())
            .first()
        )
        if prop is None:
            raise NotFoundError("Property not found")
        return prop
