"""
Shared builders and in-memory fakes for lead import tests.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence

from app.domain.lead_import import ColumnMapping, LeadRecord, RawRow, RawTable, SemanticType
from app.errors import PersistenceFailureError
from app.services.lead_persistence import PersistedLeadList


def make_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> RawTable:
    return RawTable(
        headers=tuple(headers),
        rows=tuple(RawRow(headers, list(values)) for values in rows),
    )


def make_mapping(*pairs: tuple[str, SemanticType]) -> tuple[ColumnMapping, ...]:
    return tuple(ColumnMapping(column_name=name, semantic_type=semantic_type) for name, semantic_type in pairs)


def csv_bytes(*lines: str) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")


class FakeLeadPersistence:
    """
    In-memory persistence that mimics per-list profile URL de-duplication.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []
        self.lists: dict[uuid.UUID, dict[str, object]] = {}

    def persist_lead_list(
        self,
        *,
        org_id: uuid.UUID,
        name: str,
        mappings: Sequence[ColumnMapping],
        records: Sequence[LeadRecord],
        file_name: str | None = None,
    ) -> PersistedLeadList:
        self.calls.append(
            {
                "org_id": org_id,
                "name": name,
                "mappings": tuple(mappings),
                "records": tuple(records),
                "file_name": file_name,
            }
        )
        unique_urls = {record.profile_url for record in records if record.profile_url}
        lead_list_id = uuid.uuid4()
        self.lists[lead_list_id] = {
            "org_id": org_id,
            "name": name,
            "total_leads": len(unique_urls),
            "mapped_headers": [column.to_dict() for column in mappings],
        }
        return PersistedLeadList(lead_list_id=lead_list_id, inserted_count=len(unique_urls))


class FailingLeadPersistence:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error or PersistenceFailureError()
        self.attempts = 0

    def persist_lead_list(self, **kwargs: object) -> PersistedLeadList:
        self.attempts += 1
        raise self.error


class RecordingStorage:
    def __init__(self) -> None:
        self.deleted: list[str] = []

    def save(self, **kwargs: object) -> None:
        raise NotImplementedError

    def delete(self, *, storage_path: str) -> None:
        self.deleted.append(storage_path)

