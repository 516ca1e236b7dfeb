"""
app/services/lead_persistence.py

Authoritative server-side persistence of imported lead lists.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.lead_import import ColumnMapping, LeadRecord
from app.errors import PersistenceFailureError
from db.repositories.lead_list_repository import LeadListRepository
from db.repositories.types import LeadEntryCreate, LeadListCreate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersistedLeadList:
    lead_list_id: uuid.UUID
    inserted_count: int


class LeadPersistence(Protocol):
    """
    Persistence collaborator used by the import orchestrator.
    """

    def persist_lead_list(
        self,
        *,
        org_id: uuid.UUID,
        name: str,
        mappings: Sequence[ColumnMapping],
        records: Sequence[LeadRecord],
        file_name: str | None = None,
    ) -> PersistedLeadList:
        ...


def mapping_snapshot(mappings: Sequence[ColumnMapping]) -> list[dict[str, Any]]:
    return [column.to_dict() for column in mappings]


def to_entry_creates(records: Sequence[LeadRecord]) -> list[LeadEntryCreate]:
    """
    Convert records to insert DTOs, re-checking the profile URL requirement.
    """

    return [
        LeadEntryCreate(
            profile_url=record.profile_url.strip(),
            first_name=record.first_name,
            last_name=record.last_name,
            company=record.company,
            title=record.title,
            custom_fields=dict(record.custom_fields) or None,
        )
        for record in records
        if record.profile_url and record.profile_url.strip()
    ]


class SQLAlchemyLeadPersistence:
    """
    Creates one LeadList and its entries in a single transaction.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], Session] | None = None,
        batch_size: int = 1000,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory
        self._batch_size = max(1, batch_size)

    def persist_lead_list(
        self,
        *,
        org_id: uuid.UUID,
        name: str,
        mappings: Sequence[ColumnMapping],
        records: Sequence[LeadRecord],
        file_name: str | None = None,
    ) -> PersistedLeadList:
        entries = to_entry_creates(records)
        if len(entries) != len(records):
            logger.warning(
                "Dropped %d lead records without profile_url before persistence org_id=%s",
                len(records) - len(entries),
                org_id,
            )

        try:
            with self._session_factory() as session:
                repository = LeadListRepository(session)
                with session.begin():
                    lead_list = repository.create_lead_list(
                        LeadListCreate(
                            org_id=org_id,
                            name=name,
                            total_leads=len(entries),
                            mapped_headers=mapping_snapshot(mappings),
                            file_name=file_name,
                        )
                    )
                    inserted = repository.bulk_insert_entries(
                        lead_list,
                        entries,
                        batch_size=self._batch_size,
                    )
                    # Duplicate profile URLs collapse on insert.
                    lead_list.total_leads = inserted
                    lead_list_id = lead_list.id
        except SQLAlchemyError as exc:
            raise PersistenceFailureError() from exc

        logger.info(
            "Persisted lead list id=%s org_id=%s leads=%d",
            lead_list_id,
            org_id,
            inserted,
        )
        return PersistedLeadList(lead_list_id=lead_list_id, inserted_count=inserted)
