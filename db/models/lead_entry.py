"""
db/models/lead_entry.py

LeadEntry model: one normalized prospect inside a lead list.
"""

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.lead_list import LeadList


class LeadEntry(Base, TimestampMixin):
    """
    One lead row. profile_url is required and unique within its list.
    """

    __tablename__ = "lead_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    lead_list_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("lead_lists.id", ondelete="CASCADE"),
        nullable=False,
    )

    org_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
    )

    profile_url: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
    )

    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    title: Mapped[str | None] = mapped_column(String(512), nullable=True)

    custom_fields: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="Mapped columns without a dedicated attribute, keyed by type",
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    lead_list: Mapped["LeadList"] = relationship(
        "LeadList",
        back_populates="leads",
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        UniqueConstraint("lead_list_id", "profile_url", name="uq_lead_entries_list_profile_url"),
        Index("ix_lead_entries_lead_list_id", "lead_list_id"),
        Index("ix_lead_entries_org_id", "org_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<LeadEntry id={self.id} lead_list_id={self.lead_list_id} "
            f"profile_url={self.profile_url!r}>"
        )
