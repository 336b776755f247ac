"""matching baseline: deals, listings, shortlist, quality snapshots, audit

Revision ID: 20260301_0001
Revises:
Create Date: 2026-03-01 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None

DEAL_TYPES = ("PURCHASE", "RENTAL")
DEAL_STAGES = ("NEW", "QUALIFIED", "VISIT", "NEGOTIATION", "WON", "LOST")
MATCH_STATUSES = ("SHORTLISTED", "PROPOSED", "VISITED", "SELECTED", "REJECTED")
PROPERTY_STATUSES = ("DRAFT", "UNDER_REVIEW", "AVAILABLE", "RESERVED", "UNDER_OFFER", "SOLD", "RENTED", "ARCHIVED")
OWNERSHIP_TYPES = ("TENANT", "CLIENT")
FURNISHING_STATUSES = ("FURNISHED", "SEMI_FURNISHED", "UNFURNISHED")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_key", sa.String(length=120), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_key"),
    )

    op.create_table(
        "deals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("contact_id", sa.Integer(), nullable=True),
        sa.Column("type", sa.Enum(*DEAL_TYPES, name="dealtype"), nullable=False),
        sa.Column("stage", sa.Enum(*DEAL_STAGES, name="dealstage"), nullable=False),
        sa.Column("budget_min", sa.Numeric(14, 2), nullable=True),
        sa.Column("budget_max", sa.Numeric(14, 2), nullable=True),
        sa.Column("location_zone", sa.String(length=255), nullable=True),
        sa.Column("criteria_json", sa.JSON(), nullable=True),
        sa.Column("expected_value", sa.Numeric(14, 2), nullable=True),
        sa.Column("probability", sa.Integer(), nullable=True),
        sa.Column("assigned_to_user_id", sa.Integer(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_deals_tenant_id", "deals", ["tenant_id"])
    op.create_index("idx_deals_tenant_stage", "deals", ["tenant_id", "stage"])
    op.create_index("idx_deals_tenant_contact", "deals", ["tenant_id", "contact_id"])

    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=True),
        sa.Column("owner_user_id", sa.Integer(), nullable=True),
        sa.Column("ownership_type", sa.Enum(*OWNERSHIP_TYPES, name="ownershiptype"), nullable=False),
        sa.Column("property_type", sa.String(length=60), nullable=False),
        sa.Column("status", sa.Enum(*PROPERTY_STATUSES, name="propertystatus"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("location_zone", sa.String(length=255), nullable=True),
        sa.Column("price", sa.Numeric(14, 2), nullable=True),
        sa.Column("surface_area", sa.Numeric(10, 2), nullable=True),
        sa.Column("rooms", sa.Integer(), nullable=True),
        sa.Column("bedrooms", sa.Integer(), nullable=True),
        sa.Column("furnishing_status", sa.Enum(*FURNISHING_STATUSES, name="furnishingstatus"), nullable=True),
        sa.Column("type_specific_data", sa.JSON(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("is_published", sa.Boolean(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("quality_score", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_properties_tenant_id", "properties", ["tenant_id"])
    op.create_index("idx_properties_tenant_status", "properties", ["tenant_id", "status"])
    op.create_index("idx_properties_geo", "properties", ["latitude", "longitude"])

    op.create_table(
        "property_media",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("url", sa.String(length=1000), nullable=False),
        sa.Column("media_type", sa.String(length=30), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_property_media_property", "property_media", ["property_id", "sort_order"])

    op.create_table(
        "property_mandates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_property_mandates_tenant_property", "property_mandates", ["tenant_id", "property_id"])

    op.create_table(
        "property_type_templates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("property_type", sa.String(length=60), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("field_definitions", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("property_type"),
    )

    op.create_table(
        "deal_property_matches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("deal_id", sa.Integer(), nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("source_owner_contact_id", sa.Integer(), nullable=True),
        sa.Column("match_score", sa.Integer(), nullable=True),
        sa.Column("match_explanation", sa.JSON(), nullable=True),
        sa.Column("status", sa.Enum(*MATCH_STATUSES, name="matchstatus"), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["deal_id"], ["deals.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "tenant_id", "deal_id", "property_id", name="uq_deal_property_matches_tenant_deal_property"
        ),
    )
    op.create_index("ix_deal_property_matches_tenant_id", "deal_property_matches", ["tenant_id"])
    op.create_index("idx_deal_property_matches_tenant_deal", "deal_property_matches", ["tenant_id", "deal_id"])

    op.create_table(
        "property_quality_scores",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("suggestions", sa.JSON(), nullable=False),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_property_quality_scores_property_time", "property_quality_scores", ["property_id", "calculated_at"]
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), nullable=True),
        sa.Column("action_key", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_audit_logs_tenant_action", "audit_logs", ["tenant_id", "action_key"])
    op.create_index("idx_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("property_quality_scores")
    op.drop_table("deal_property_matches")
    op.drop_table("property_type_templates")
    op.drop_table("property_mandates")
    op.drop_table("property_media")
    op.drop_table("properties")
    op.drop_table("deals")
    op.drop_table("tenants")
    for enum_name in ("dealtype", "dealstage", "matchstatus", "propertystatus", "ownershiptype", "furnishingstatus"):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
