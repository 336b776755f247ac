"""Deal shortlist: idempotent deal/property match records."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError

from propmatch.core.exceptions import NotFoundError
from propmatch.models import Deal, DealPropertyMatch
from propmatch.models.enums import MatchStatus
from propmatch.schemas.matching import ShortlistAddRequest
from propmatch.services.base_service import BaseService
from propmatch.services.matching_service import PropertyCandidateProvider
from propmatch.utils.validators import parse_enum, parse_model, validate_score

logger = logging.getLogger(__name__)

ACTION_PROPERTY_SHORTLISTED = "CRM_DEAL_PROPERTY_SHORTLISTED"
ACTION_PROPERTY_STATUS_CHANGED = "CRM_DEAL_PROPERTY_STATUS_CHANGED"


class ShortlistService(BaseService):
    """Creates and updates deal/property match rows.

    At most one row exists per (tenant, deal, property); repeated adds
    refresh the score and explanation without touching the status.
    """

    def add_to_shortlist(
        self,
        tenant_id: int,
        deal_id: int,
        property_id: int,
        score: int,
        explanation: dict[str, Any] | None = None,
        source_owner_contact_id: int | None = None,
        actor_user_id: int | None = None,
    ) -> DealPropertyMatch:
        request = parse_model(
            ShortlistAddRequest,
            {
                "property_id": property_id,
                "match_score": validate_score(score, "match_score"),
                "match_explanation": explanation,
                "source_owner_contact_id": source_owner_contact_id,
            },
        )
        match_score = request.match_score
        self._require_deal(tenant_id, deal_id)
        if PropertyCandidateProvider(self.db).get_visible(tenant_id, property_id) is None:
            raise NotFoundError("Property not found")

        match = self._find(tenant_id, deal_id, property_id)
        created = match is None
        if created:
            match = DealPropertyMatch(
                tenant_id=tenant_id,
                deal_id=deal_id,
                property_id=property_id,
                source_owner_contact_id=source_owner_contact_id,
                match_score=match_score,
                match_explanation=explanation,
                status=MatchStatus.SHORTLISTED,
            )
            try:
                with self.db.begin_nested():
                    self.db.add(match)
            except IntegrityError:
                # Another writer inserted the same pair first.
                logger.info(
                    "shortlist.insert_race",
                    extra={"event": "shortlist.insert_race", "deal_id": deal_id, "property_id": property_id},
                )
                created = False
                match = self._find(tenant_id, deal_id, property_id)
                if match is None:
                    raise

        if not created:
            self._refresh_scores(match, match_score, explanation, source_owner_contact_id)

        self.commit()
        self.db.refresh(match)

        logger.info(
            "shortlist.upserted",
            extra={
                "event": "shortlist.upserted",
                "tenant_id": tenant_id,
                "deal_id": deal_id,
                "property_id": property_id,
                "created": created,
                "match_score": match_score,
            },
        )
        self._audit(
            ACTION_PROPERTY_SHORTLISTED,
            "deal",
            deal_id,
            tenant_id=tenant_id,
            actor_user_id=actor_user_id,
            payload={"property_id": property_id, "match_score": match_score, "created": created},
        )
        return match

    def update_match_status(
        self,
        tenant_id: int,
        deal_id: int,
        property_id: int,
        status: MatchStatus | str,
        actor_user_id: int | None = None,
    ) -> DealPropertyMatch:
        new_status = parse_enum(MatchStatus, status, "match status")
        match = self._find(tenant_id, deal_id, property_id)
        if match is None:
            raise NotFoundError("Property match not found")

        old_status = match.status
        match.status = new_status
        self.commit()
        self.db.refresh(match)

        logger.info(
            "shortlist.status_changed",
            extra={
                "event": "shortlist.status_changed",
                "deal_id": deal_id,
                "property_id": property_id,
                "status": new_status.value,
            },
        )
        self._audit(
            ACTION_PROPERTY_STATUS_CHANGED,
            "deal",
            deal_id,
            tenant_id=tenant_id,
            actor_user_id=actor_user_id,
            payload={"property_id": property_id, "old_status": old_status, "new_status": new_status},
        )
        return match

    def list_deal_matches(self, tenant_id: int, deal_id: int) -> list[DealPropertyMatch]:
        self._require_deal(tenant_id, deal_id)
        return (
            self.db.query(DealPropertyMatch)
            .filter(
                DealPropertyMatch.owned_by(tenant_id),
                DealPropertyMatch.deal_id == deal_id,
                DealPropertyMatch.live(),
            )
            .order_by(DealPropertyMatch.match_score.desc(), DealPropertyMatch.id)
            .all()
        )

    def _require_deal(self, tenant_id: int, deal_id: int) -> Deal:
        deal = (
            self.db.query(Deal)
            .filter(Deal.id == deal_id, Deal.owned_by(tenant_id), Deal.live())
            .first()
        )
        if deal is None:
            raise NotFoundError("Deal not found")
        return deal

    def _find(self, tenant_id: int, deal_id: int, property_id: int) -> DealPropertyMatch | None:
        return (
            self.db.query(DealPropertyMatch)
            .filter(
                DealPropertyMatch.owned_by(tenant_id),
                DealPropertyMatch.deal_id == deal_id,
                DealPropertyMatch.property_id == property_id,
            )
            .first()
        )

    @staticmethod
    def _refresh_scores(
        match: DealPropertyMatch,
        match_score: int,
        explanation: dict[str, Any] | None,
        source_owner_contact_id: int | None,
    ) -> None:
        match.match_score = match_score
        match.match_explanation = explanation
        if source_owner_contact_id is not None:
            match.source_owner_contact_id = source_owner_contact_id
