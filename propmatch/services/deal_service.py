"""Deal lifecycle service with optimistic concurrency."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy.orm.exc import StaleDataError

from propmatch.core.exceptions import ConflictError, NotFoundError, ValidationError
from propmatch.models import Deal
from propmatch.models.base import utcnow
from propmatch.models.enums import TERMINAL_DEAL_STAGES, DealStage
from propmatch.schemas.deals import DealCreateRequest, DealStageUpdateRequest, DealUpdateRequest
from propmatch.services.base_service import BaseService
from propmatch.utils.validators import optional_text, parse_enum, parse_model

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "Deal has been modified by another user. Please refresh and try again."

ACTION_DEAL_CREATED = "CRM_DEAL_CREATED"
ACTION_DEAL_STAGE_CHANGED = "CRM_DEAL_STAGE_CHANGED"
ACTION_DEAL_UPDATED = "CRM_DEAL_UPDATED"

# Fields copied verbatim from an update request onto the row.
_PLAIN_FIELDS = (
    "type",
    "budget_min",
    "budget_max",
    "location_zone",
    "expected_value",
    "probability",
    "assigned_to_user_id",
)


def closure_effects(
    old_stage: DealStage,
    new_stage: DealStage,
    closed_reason: str | None,
    now: datetime,
) -> dict[str, Any]:
    """Return the closed_at/closed_reason assignments implied by a stage move.

    Any stage may move to any other stage; only entering, staying in or
    leaving a terminal stage has side effects.
    """
    was_closed = old_stage in TERMINAL_DEAL_STAGES
    is_closed = new_stage in TERMINAL_DEAL_STAGES

    if is_closed and not was_closed:
        effects: dict[str, Any] = {"closed_at": now}
        if closed_reason is not None:
            effects["closed_reason"] = closed_reason
        return effects
    if is_closed and was_closed:
        return {"closed_reason": closed_reason} if closed_reason is not None else {}
    if was_closed:
        return {"closed_at": None, "closed_reason": None}
    return {}


def _criteria_json(criteria: Any) -> dict[str, Any] | None:
    if criteria is None:
        return None
    return criteria.model_dump(mode="json", exclude_none=True)


class DealService(BaseService):
    """Service for deal creation, lookup and versioned updates."""

    def create_deal(self, tenant_id: int, actor_user_id: int | None = None, **fields: Any) -> Deal:
        payload = parse_model(DealCreateRequest, fields)
        deal = Deal(
            tenant_id=tenant_id,
            contact_id=payload.contact_id,
            type=payload.type,
            stage=DealStage.NEW,
            budget_min=payload.budget_min,
            budget_max=payload.budget_max,
            location_zone=optional_text(payload.location_zone, max_len=255),
            criteria_json=_criteria_json(payload.criteria),
            expected_value=payload.expected_value,
            probability=payload.probability,
            assigned_to_user_id=payload.assigned_to_user_id,
        )
        self.db.add(deal)
        self.commit()
        self.db.refresh(deal)

        logger.info(
            "deal.created",
            extra={"event": "deal.created", "tenant_id": tenant_id, "deal_id": deal.id},
        )
        self._audit(
            ACTION_DEAL_CREATED,
            "deal",
            deal.id,
            tenant_id=tenant_id,
            actor_user_id=actor_user_id,
            payload={"type": deal.type, "stage": deal.stage, "version": deal.version},
        )
        return deal

    def get_deal(self, tenant_id: int, deal_id: int) -> Deal | None:
        return (
            self.db.query(Deal)
            .filter(Deal.id == deal_id, Deal.owned_by(tenant_id), Deal.live())
            .first()
        )

    def require_deal(self, tenant_id: int, deal_id: int) -> Deal:
        deal = self.get_deal(tenant_id, deal_id)
        if deal is None:
            raise NotFoundError("Deal not found")
        return deal

    def list_by_stage(self, tenant_id: int, stage: DealStage | str) -> list[Deal]:
        wanted = parse_enum(DealStage, stage, "deal stage")
        return (
            self.db.query(Deal)
            .filter(Deal.owned_by(tenant_id), Deal.stage == wanted, Deal.live())
            .order_by(Deal.id)
            .all()
        )

    def update_deal(
        self,
        tenant_id: int,
        deal_id: int,
        request: DealUpdateRequest | Mapping[str, Any],
        actor_user_id: int | None = None,
    ) -> Deal:
        """Apply a bundle of changes if ``request.version`` is still current.

        Only fields explicitly present in the request are applied. The row's
        version moves forward by exactly one on success.
        """
        payload = parse_model(DealUpdateRequest, request)
        deal = self.require_deal(tenant_id, deal_id)
        if deal.version != payload.version:
            logger.info(
                "deal.update.version_conflict",
                extra={
                    "event": "deal.update.version_conflict",
                    "deal_id": deal_id,
                    "expected_version": payload.version,
                    "current_version": deal.version,
                },
            )
            raise ConflictError(CONFLICT_MESSAGE)

        provided = payload.model_fields_set
        wanted: dict[str, Any] = {name: getattr(payload, name) for name in _PLAIN_FIELDS if name in provided}
        if "type" in wanted and wanted["type"] is None:
            raise ValidationError("Deal type cannot be cleared")
        if "location_zone" in wanted:
            wanted["location_zone"] = optional_text(wanted["location_zone"], max_len=255)
        if "criteria" in provided:
            wanted["criteria_json"] = _criteria_json(payload.criteria)

        budget_min = wanted.get("budget_min", deal.budget_min)
        budget_max = wanted.get("budget_max", deal.budget_max)
        if budget_min is not None and budget_max is not None and float(budget_min) > float(budget_max):
            raise ValidationError("budget_min must be <= budget_max")

        old_stage = deal.stage
        new_stage = old_stage
        if "stage" in provided and payload.stage is not None:
            new_stage = payload.stage
            wanted["stage"] = new_stage
        closed_reason = optional_text(payload.closed_reason, max_len=2000) if "closed_reason" in provided else None
        wanted.update(closure_effects(old_stage, new_stage, closed_reason, utcnow()))

        changes = self._apply(deal, wanted)
        deal.touch()
        try:
            self.commit()
        except StaleDataError as exc:
            logger.info(
                "deal.update.concurrent_write",
                extra={"event": "deal.update.concurrent_write", "deal_id": deal_id},
            )
            raise ConflictError(CONFLICT_MESSAGE) from exc
        self.db.refresh(deal)

        stage_changed = new_stage != old_stage
        logger.info(
            "deal.updated",
            extra={
                "event": "deal.updated",
                "tenant_id": tenant_id,
                "deal_id": deal.id,
                "version": deal.version,
                "stage_changed": stage_changed,
                "fields": sorted(changes),
            },
        )
        self._audit(
            ACTION_DEAL_STAGE_CHANGED if stage_changed else ACTION_DEAL_UPDATED,
            "deal",
            deal.id,
            tenant_id=tenant_id,
            actor_user_id=actor_user_id,
            payload={"changes": changes, "version": deal.version},
        )
        return deal

    def advance_deal_stage(
        self,
        tenant_id: int,
        deal_id: int,
        new_stage: DealStage | str,
        expected_version: int,
        closed_reason: str | None = None,
        actor_user_id: int | None = None,
    ) -> Deal:
        fields: dict[str, Any] = {"stage": parse_enum(DealStage, new_stage, "deal stage"), "version": expected_version}
        if closed_reason is not None:
            fields["closed_reason"] = closed_reason
        request = parse_model(DealStageUpdateRequest, fields)
        # Unset fields stay out of the update.
        return self.update_deal(
            tenant_id, deal_id, request.model_dump(exclude_unset=True), actor_user_id=actor_user_id
        )

    def close_deal(
        self,
        tenant_id: int,
        deal_id: int,
        outcome: DealStage | str,
        expected_version: int,
        closed_reason: str | None = None,
        actor_user_id: int | None = None,
    ) -> Deal:
        stage = parse_enum(DealStage, outcome, "deal stage")
        if stage not in TERMINAL_DEAL_STAGES:
            raise ValidationError("A deal can only be closed as WON or LOST")
        return self.advance_deal_stage(
            tenant_id,
            deal_id,
            stage,
            expected_version,
            closed_reason=closed_reason,
            actor_user_id=actor_user_id,
        )

    @staticmethod
    def _apply(deal: Deal, wanted: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
        changes: dict[str, dict[str, Any]] = {}
        for name, value in wanted.items():
            current = getattr(deal, name)
            if current == value:
                continue
            setattr(deal, name, value)
            changes[name] = {"old": current, "new": value}
        return changes
