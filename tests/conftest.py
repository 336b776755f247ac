from __future__ import annotations

import pytest
from sqlalchemy.orm import sessionmaker

from propmatch.audit import AuditEvent
from propmatch.database.db import build_engine
from propmatch.models import (
    Base,
    Deal,
    Property,
    PropertyMandate,
    PropertyMedia,
    PropertyTypeTemplate,
    Tenant,
)
from propmatch.models.enums import DealStage, OwnershipType, PropertyStatus


class RecordingAuditSink:
    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    def record(self, event: AuditEvent) -> None:
        self.events.append(event)

    def actions(self) -> list[str]:
        return [event.action_key for event in self.events]


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'propmatch_test.db'}")
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


@pytest.fixture
def make_tenant(session):
    counter = {"n": 0}

    def _make(name: str = "Agency") -> Tenant:
        counter["n"] += 1
        tenant = Tenant(tenant_key=f"tenant-{counter['n']}", name=name)
        session.add(tenant)
        session.commit()
        session.refresh(tenant)
        return tenant

    return _make


@pytest.fixture
def make_deal(session):
    def _make(tenant: Tenant, **fields) -> Deal:
        deal = Deal(tenant_id=tenant.id, stage=fields.pop("stage", DealStage.NEW), **fields)
        session.add(deal)
        session.commit()
        session.refresh(deal)
        return deal

    return _make


@pytest.fixture
def make_property(session):
    def _make(tenant: Tenant | None, **fields) -> Property:
        fields.setdefault("property_type", "apartment")
        fields.setdefault("status", PropertyStatus.AVAILABLE)
        fields.setdefault("ownership_type", OwnershipType.TENANT)
        media = fields.pop("media", [])
        prop = Property(tenant_id=tenant.id if tenant is not None else None, **fields)
        for index, item in enumerate(media):
            prop.media.append(PropertyMedia(sort_order=index, **item))
        session.add(prop)
        session.commit()
        session.refresh(prop)
        return prop

    return _make


@pytest.fixture
def make_mandate(session):
    def _make(tenant: Tenant, prop: Property, is_active: bool = True) -> PropertyMandate:
        mandate = PropertyMandate(tenant_id=tenant.id, property_id=prop.id, is_active=is_active)
        session.add(mandate)
        session.commit()
        return mandate

    return _make


@pytest.fixture
def make_template(session):
    def _make(property_type: str = "apartment", field_definitions=None) -> PropertyTypeTemplate:
        template = PropertyTypeTemplate(
            property_type=property_type,
            name=property_type.title(),
            field_definitions=field_definitions or [],
        )
        session.add(template)
        session.commit()
        return template

    return _make
