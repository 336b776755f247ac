"""Entry point wiring the matching services to a session factory and audit sink."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from sqlalchemy.orm import Session

from propmatch.audit import AuditQueue, AuditSink, build_audit_sink
from propmatch.core.config import Config, get_config
from propmatch.database.db import get_session_factory
from propmatch.models import Deal, DealPropertyMatch, Property
from propmatch.models.enums import DealStage, MatchStatus
from propmatch.schemas.deals import DealUpdateRequest
from propmatch.scoring.quality import QualityResult
from propmatch.services.base_service import BaseService
from propmatch.services.deal_service import DealService
from propmatch.services.matching_service import MatchingService, RankedMatch
from propmatch.services.publication_service import PublicationCheck, PublicationService
from propmatch.services.quality_service import QualityService
from propmatch.services.shortlist_service import ShortlistService

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=BaseService)


class MatchingEngine:
    """Facade over the deal, matching, shortlist and quality services.

    Every call runs in its own session. Call ``start()`` before use so the
    audit drain thread runs, and ``shutdown()`` to flush pending audit events.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        audit: AuditSink | None = None,
        config: Config | None = None,
    ) -> None:
        self.config = config or get_config()
        self.session_factory = session_factory or get_session_factory()
        self.audit = audit or build_audit_sink(
            self.config.AUDIT_ENABLED,
            session_factory=self.session_factory,
            maxsize=self.config.AUDIT_QUEUE_MAXSIZE,
            flush_threshold=self.config.AUDIT_FLUSH_THRESHOLD,
            flush_interval=self.config.AUDIT_FLUSH_INTERVAL_SECONDS,
        )

    def start(self) -> None:
        if isinstance(self.audit, AuditQueue):
            self.audit.start()
        logger.info(
            "engine.started",
            extra={"event": "engine.started", "audit_sink": type(self.audit).__name__},
        )

    def shutdown(self, drain: bool = True) -> None:
        if isinstance(self.audit, AuditQueue):
            self.audit.shutdown(drain=drain)
        logger.info("engine.stopped", extra={"event": "engine.stopped"})

    def __enter__(self) -> "MatchingEngine":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()

    @contextmanager
    def _service(self, service_cls: type[S], **kwargs: Any) -> Iterator[S]:
        with service_cls(self.session_factory(), self.audit, **kwargs) as service:
            yield service

    def rank_matches(
        self,
        deal_id: int,
        threshold: int | None = None,
        limit: int | None = None,
        tenant_id: int | None = None,
        near: tuple[float, float] | None = None,
        radius_m: float | None = None,
    ) -> list[RankedMatch]:
        threshold = self.config.MATCH_DEFAULT_THRESHOLD if threshold is None else threshold
        limit = self.config.MATCH_DEFAULT_LIMIT if limit is None else limit
        with self._service(MatchingService, scoring_workers=self.config.MATCH_SCORING_WORKERS) as service:
            return service.rank_matches(
                deal_id, threshold=threshold, limit=limit, tenant_id=tenant_id, near=near, radius_m=radius_m
            )

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
        with self._service(ShortlistService) as service:
            return service.add_to_shortlist(
                tenant_id,
                deal_id,
                property_id,
                score,
                explanation,
                source_owner_contact_id=source_owner_contact_id,
                actor_user_id=actor_user_id,
            )

    def update_match_status(
        self,
        tenant_id: int,
        deal_id: int,
        property_id: int,
        status: MatchStatus | str,
        actor_user_id: int | None = None,
    ) -> DealPropertyMatch:
        with self._service(ShortlistService) as service:
            return service.update_match_status(tenant_id, deal_id, property_id, status, actor_user_id=actor_user_id)

    def list_deal_matches(self, tenant_id: int, deal_id: int) -> list[DealPropertyMatch]:
        with self._service(ShortlistService) as service:
            return service.list_deal_matches(tenant_id, deal_id)

    def create_deal(self, tenant_id: int, actor_user_id: int | None = None, **fields: Any) -> Deal:
        with self._service(DealService) as service:
            return service.create_deal(tenant_id, actor_user_id=actor_user_id, **fields)

    def update_deal(
        self,
        tenant_id: int,
        deal_id: int,
        request: DealUpdateRequest | dict[str, Any],
        actor_user_id: int | None = None,
    ) -> Deal:
        with self._service(DealService) as service:
            return service.update_deal(tenant_id, deal_id, request, actor_user_id=actor_user_id)

    def advance_deal_stage(
        self,
        tenant_id: int,
        deal_id: int,
        new_stage: DealStage | str,
        expected_version: int,
        closed_reason: str | None = None,
        actor_user_id: int | None = None,
    ) -> Deal:
        with self._service(DealService) as service:
            return service.advance_deal_stage(
                tenant_id,
                deal_id,
                new_stage,
                expected_version,
                closed_reason=closed_reason,
                actor_user_id=actor_user_id,
            )

    def calculate_quality_score(self, property_id: int) -> QualityResult:
        with self._service(QualityService) as service:
            return service.calculate_quality_score(property_id)

    def validate_publication_requirements(self, property_id: int) -> PublicationCheck:
        with self._service(PublicationService, min_quality_score=self.config.PUBLICATION_MIN_QUALITY_SCORE) as service:
            return service.validate_publication_requirements(property_id)

    def publish_property(self, property_id: int, actor_user_id: int | None = None) -> Property:
        with self._service(PublicationService, min_quality_score=self.config.PUBLICATION_MIN_QUALITY_SCORE) as service:
            return service.publish_property(property_id, actor_user_id=actor_user_id)
