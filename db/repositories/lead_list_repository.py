"""
Lead list repository responsible for DB writes and lookup operations.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from db.models.lead_entry import LeadEntry
from db.models.lead_list import LeadList
from db.repositories.errors import LeadListNotFoundError
from db.repositories.types import LeadEntryCreate, LeadListCreate

_DEFAULT_BATCH_SIZE = 1000
_DEDUPE_CONSTRAINT = "uq_lead_entries_list_profile_url"


def prepare_entry_payloads(
    entries: Sequence[LeadEntryCreate],
    *,
    lead_list_id: uuid.UUID,
    org_id: uuid.UUID,
) -> list[dict[str, Any]]:
    """
    Build insert payloads, dropping entries without a profile URL and
    repeated profile URLs (first occurrence wins).
    """

    seen: set[str] = set()
    payloads: list[dict[str, Any]] = []
    for entry in entries:
        profile_url = (entry.profile_url or "").strip()
        if not profile_url or profile_url in seen:
            continue
        seen.add(profile_url)
        payloads.append(
            {
                "lead_list_id": lead_list_id,
                "org_id": org_id,
                "profile_url": profile_url,
                "first_name": entry.first_name,
                "last_name": entry.last_name,
                "company": entry.company,
                "title": entry.title,
                "custom_fields": entry.custom_fields or None,
            }
        )
    return payloads


class LeadListRepository:
    """
    Repository for lead lists and their entries.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def create_lead_list(self, fields: LeadListCreate) -> LeadList:
        lead_list = LeadList(
            id=fields.lead_list_id,
            name=fields.name,
            org_id=fields.org_id,
            total_leads=fields.total_leads,
            campaign_ids=[],
            is_active=True,
            mapped_headers=fields.mapped_headers,
            file_name=fields.file_name,
        )
        self._session.add(lead_list)
        self._session.flush()
        return lead_list

    def bulk_insert_entries(
        self,
        lead_list: LeadList,
        entries: Sequence[LeadEntryCreate],
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        Insert entries with PostgreSQL bulk INSERT; returns inserted row count.
        """

        payloads = prepare_entry_payloads(
            entries,
            lead_list_id=lead_list.id,
            org_id=lead_list.org_id,
        )
        if not payloads:
            return 0

        size = max(1, batch_size)
        inserted = 0
        for start in range(0, len(payloads), size):
            chunk = payloads[start : start + size]
            stmt = (
                insert(LeadEntry)
                .values(chunk)
                .on_conflict_do_nothing(constraint=_DEDUPE_CONSTRAINT)
                .returning(LeadEntry.id)
            )
            inserted += len(self._session.scalars(stmt).all())
        return inserted

    def get_for_org(self, lead_list_id: uuid.UUID, org_id: uuid.UUID) -> LeadList:
        stmt = select(LeadList).where(
            LeadList.id == lead_list_id,
            LeadList.org_id == org_id,
        )
        lead_list = self._session.execute(stmt).scalars().first()
        if lead_list is None:
            raise LeadListNotFoundError(f"Lead list not found: {lead_list_id}")
        return lead_list
