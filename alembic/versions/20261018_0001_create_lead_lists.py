"""create lead_lists and lead_entries tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "lead_lists",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("org_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "total_leads",
            sa.Integer(),
            nullable=False,
            comment="Accepted lead count at creation time",
        ),
        sa.Column(
            "campaign_ids",
            postgresql.ARRAY(sa.Text()),
            server_default=sa.text("'{}'"),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "mapped_headers",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Column mapping snapshot: columnName, mappedType, samples",
        ),
        sa.Column(
            "file_name",
            sa.String(length=255),
            nullable=True,
            comment="Original upload file name",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_lead_lists"),
    )
    op.create_index("ix_lead_lists_org_id", "lead_lists", ["org_id"], unique=False)
    op.create_index("ix_lead_lists_org_active", "lead_lists", ["org_id", "is_active"], unique=False)

    op.create_table(
        "lead_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("lead_list_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("org_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("profile_url", sa.String(length=2048), nullable=False),
        sa.Column("first_name", sa.String(length=255), nullable=True),
        sa.Column("last_name", sa.String(length=255), nullable=True),
        sa.Column("company", sa.String(length=255), nullable=True),
        sa.Column("title", sa.String(length=512), nullable=True),
        sa.Column(
            "custom_fields",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Mapped columns without a dedicated attribute, keyed by type",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["lead_list_id"],
            ["lead_lists.id"],
            name="fk_lead_entries_lead_list_id_lead_lists",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_lead_entries"),
        sa.UniqueConstraint("lead_list_id", "profile_url", name="uq_lead_entries_list_profile_url"),
    )
    op.create_index("ix_lead_entries_lead_list_id", "lead_entries", ["lead_list_id"], unique=False)
    op.create_index("ix_lead_entries_org_id", "lead_entries", ["org_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_lead_entries_org_id", table_name="lead_entries")
    op.drop_index("ix_lead_entries_lead_list_id", table_name="lead_entries")
    op.drop_table("lead_entries")
    op.drop_index("ix_lead_lists_org_active", table_name="lead_lists")
    op.drop_index("ix_lead_lists_org_id", table_name="lead_lists")
    op.drop_table("lead_lists")
