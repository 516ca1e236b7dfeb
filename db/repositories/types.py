"""
Typed DTOs used by repository persistence/storage flows.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class StoredFileMetadata:
    """
    Metadata produced by the storage backend after saving a file.
    """

    file_name: str
    storage_path: str
    mime_type: str | None
    file_size_bytes: int
    checksum: str
    stored_at: datetime


@dataclass(frozen=True)
class LeadListCreate:
    """
    Fields for one new lead list row.
    """

    org_id: uuid.UUID
    name: str
    total_leads: int
    mapped_headers: list[dict[str, Any]]
    file_name: str | None = None
    lead_list_id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(frozen=True)
class LeadEntryCreate:
    """
    Normalized lead entry used for bulk insert operations.
    """

    profile_url: str
    first_name: str | None = None
    last_name: str | None = None
    company: str | None = None
    title: str | None = None
    custom_fields: dict[str, str] | None = None
