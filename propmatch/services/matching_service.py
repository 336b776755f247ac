"""Deal-to-property ranking over a tenant's visible candidate listings."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from propmatch.core.config import get_config
from propmatch.core.exceptions import NotFoundError
from propmatch.models import Deal, Property, PropertyMandate
from propmatch.models.enums import MATCHABLE_PROPERTY_STATUSES, TERMINAL_DEAL_STAGES, OwnershipType
from propmatch.scoring.match import DealCriteria, MatchScorer, PropertyAttributes
from propmatch.schemas.matching import RankMatchesQuery
from propmatch.services.base_service import BaseService
from propmatch.utils.geo import bounding_box, haversine_m
from propmatch.utils.validators import parse_model

logger = logging.getLogger(__name__)


@dataclass
class RankedMatch:
    property_id: int
    match_score: int
    match_explanation: dict[str, Any] = field(default_factory=dict)


class PropertyCandidateProvider:
    """Loads the listings a tenant may match against.

    A listing is visible when the tenant owns it, or when it is client-owned
    and the tenant holds an active mandate on it.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    @staticmethod
    def visibility_clause(tenant_id: int):
        mandated = select(PropertyMandate.property_id).where(
            PropertyMandate.tenant_id == tenant_id,
            PropertyMandate.is_active.is_(True),
            PropertyMandate.live(),
        )
        return or_(
            and_(Property.ownership_type == OwnershipType.TENANT, Property.tenant_id == tenant_id),
            and_(Property.ownership_type == OwnershipType.CLIENT, Property.id.in_(mandated)),
        )

    def get_visible(self, tenant_id: int, property_id: int) -> Property | None:
        return (
            self.db.query(Property)
            .filter(
                Property.id == property_id,
                Property.live(),
                self.visibility_clause(tenant_id),
            )
            .first()
        )

    def fetch(
        self,
        tenant_id: int,
        near: tuple[float, float] | None = None,
        radius_m: float | None = None,
    ) -> list[Property]:
        """Matchable listings in id order, optionally within ``radius_m`` of ``near``."""
        query = self.db.query(Property).filter(
            Property.live(),
            Property.status.in_(MATCHABLE_PROPERTY_STATUSES),
            self.visibility_clause(tenant_id),
        )
        if near is None:
            return query.order_by(Property.id).all()

        latitude, longitude = near
        min_lat, max_lat, min_lng, max_lng = bounding_box(latitude, longitude, radius_m)
        rows = (
            query.filter(
                Property.latitude.is_not(None),
                Property.longitude.is_not(None),
                Property.latitude.between(min_lat, max_lat),
                Property.longitude.between(min_lng, max_lng),
            )
            .order_by(Property.id)
            .all()
        )
        return [
            row
            for row in rows
            if haversine_m(latitude, longitude, row.latitude, row.longitude) <= radius_m
        ]


class MatchingService(BaseService):
    """Scores and ranks candidate listings for one deal."""

    def __init__(self, db=None, audit=None, scorer: MatchScorer | None = None, scoring_workers: int | None = None):
        super().__init__(db, audit)
        self.scorer = scorer or MatchScorer()
        self.scoring_workers = scoring_workers if scoring_workers is not None else get_config().MATCH_SCORING_WORKERS
        self.candidates = PropertyCandidateProvider(self.db)

    def rank_matches(
        self,
        deal_id: int,
        threshold: int | None = None,
        limit: int | None = None,
        tenant_id: int | None = None,
        near: tuple[float, float] | None = None,
        radius_m: float | None = None,
    ) -> list[RankedMatch]:
        """Return at most ``limit`` listings scoring ``threshold`` or more.

        Ordered by score descending; ties keep candidate id order.
        """
        config = get_config()
        params = parse_model(
            RankMatchesQuery,
            {
                "threshold": config.MATCH_DEFAULT_THRESHOLD if threshold is None else threshold,
                "limit": config.MATCH_DEFAULT_LIMIT if limit is None else limit,
                "latitude": near[0] if near is not None else None,
                "longitude": near[1] if near is not None else None,
                "radius_m": radius_m,
            },
        )

        deal = self._load_deal(deal_id, tenant_id)
        if deal.stage in TERMINAL_DEAL_STAGES:
            logger.warning(
                "matching.closed_deal_ranked",
                extra={"event": "matching.closed_deal_ranked", "deal_id": deal.id, "stage": deal.stage.value},
            )

        properties = self.candidates.fetch(deal.tenant_id, near=params.near, radius_m=params.radius_m)
        criteria = DealCriteria.from_deal(deal)
        attributes = [PropertyAttributes.from_property(prop) for prop in properties]
        scores = self._score_all(criteria, attributes)

        ranked = [
            RankedMatch(property_id=prop.id, match_score=score.total, match_explanation=score.as_explanation())
            for prop, score in zip(properties, scores)
            if score.total >= params.threshold
        ]
        ranked = sorted(ranked, key=lambda match: match.match_score, reverse=True)[:params.limit]

        logger.info(
            "matching.ranked",
            extra={
                "event": "matching.ranked",
                "tenant_id": deal.tenant_id,
                "deal_id": deal.id,
                "candidates": len(properties),
                "returned": len(ranked),
                "threshold": params.threshold,
            },
        )
        return ranked

    def _score_all(self, criteria: DealCriteria, attributes: list[PropertyAttributes]):
        score_one = partial(self.scorer.score, criteria)
        if self.scoring_workers <= 1 or len(attributes) < 2:
            return [score_one(item) for item in attributes]
        with ThreadPoolExecutor(max_workers=self.scoring_workers, thread_name_prefix="propmatch-score") as pool:
            return list(pool.map(score_one, attributes))

    def _load_deal(self, deal_id: int, tenant_id: int | None) -> Deal:
        query = self.db.query(Deal).filter(Deal.id == deal_id, Deal.live())
        if tenant_id is not None:
            query = query.filter(Deal.owned_by(tenant_id))
        deal = query.first()
        if deal is None:
            raise NotFoundError("Deal not found")
        return deal
