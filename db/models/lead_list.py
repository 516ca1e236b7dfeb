"""
db/models/lead_list.py

LeadList model: one imported set of prospects owned by an organization.
Each lead list exclusively owns its lead entries.
"""

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.lead_entry import LeadEntry


class LeadList(Base, TimestampMixin):
    """
    Represents one CSV import of leads.

    mapped_headers stores the column mapping snapshot the import used so the
    list can be explained (and re-imported) without the original file.
    """

    __tablename__ = "lead_lists"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    org_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
    )

    total_leads: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Accepted lead count at creation time",
    )

    campaign_ids: Mapped[list[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        server_default=text("'{}'"),
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    mapped_headers: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Column mapping snapshot: columnName, mappedType, samples",
    )

    file_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Original upload file name",
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    leads: Mapped[list["LeadEntry"]] = relationship(
        "LeadEntry",
        back_populates="lead_list",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        Index("ix_lead_lists_org_id", "org_id"),
        Index("ix_lead_lists_org_active", "org_id", "is_active"),
    )

    def __repr__(self) -> str:
        return (
            f"<LeadList id={self.id} name={self.name!r} "
            f"org_id={self.org_id} total_leads={self.total_leads}>"
        )
