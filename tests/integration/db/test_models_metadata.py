from __future__ import annotations

from sqlalchemy import inspect

import propmatch.models  # noqa: F401
from propmatch.models import Base


def test_model_metadata_contains_matching_tables():
    expected = {
        "tenants",
        "deals",
        "properties",
        "property_media",
        "property_mandates",
        "property_type_templates",
        "deal_property_matches",
        "property_quality_scores",
        "audit_logs",
    }
    assert expected == set(Base.metadata.tables.keys())


def test_deal_property_match_has_tenant_deal_property_unique_key(session_factory):
    with session_factory() as db:
        constraints = inspect(db.get_bind()).get_unique_constraints("deal_property_matches")

    assert {"tenant_id", "deal_id", "property_id"} in [set(item["column_names"]) for item in constraints]


def test_reset_engine_and_create_schema(tmp_path):
    import propmatch.database.db as db_module

    original_url = db_module.DATABASE_URL
    db_module.reset_engine(f"sqlite:///{tmp_path / 'reset.db'}")
    try:
        db_module.create_schema()
        assert db_module.verify_database_connection() is True
        with db_module.get_db_session() as db:
            tables = set(inspect(db.get_bind()).get_table_names())
        assert "deal_property_matches" in tables
    finally:
        db_module.get_engine().dispose()
        db_module.reset_engine(original_url)
