"""
app/api/routers/lead_lists.py

Lead list import HTTP endpoints.

Every failure is raised as a LeadImportError and answered by the
application handler with `{"error": message}`.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, Form, UploadFile
from sqlalchemy.orm import Session

from app.api.dependencies import get_csv_upload, get_org_id
from app.errors import LeadListNotFound, UploadStorageError
from app.schemas.lead_import import (
    HeaderSuggestionResponse,
    LeadImportResponse,
    LeadListDetailResponse,
    MappingSuggestionResponse,
    parse_mapped_headers,
)
from app.services.lead_import_orchestrator import (
    LeadImportOrchestrator,
    get_lead_import_orchestrator,
    get_upload_storage,
)
from db.repositories.errors import FileStorageError, LeadListNotFoundError
from db.repositories.lead_list_repository import LeadListRepository
from db.repositories.storage import FileStorageBackend
from db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lead-lists", tags=["lead-lists"])


def _read_upload(file: UploadFile) -> bytes:
    try:
        return file.file.read()
    finally:
        file.file.close()


@router.post("/mapping-suggestions", response_model=MappingSuggestionResponse)
def suggest_mappings(
    file: UploadFile = Depends(get_csv_upload),
    org_id: uuid.UUID = Depends(get_org_id),
    orchestrator: LeadImportOrchestrator = Depends(get_lead_import_orchestrator),
) -> MappingSuggestionResponse:
    """
    Propose a semantic type for every column of an uploaded CSV.
    """

    suggestion = orchestrator.suggest_mappings(_read_upload(file))
    logger.info(
        "Mapping suggestions org_id=%s file=%s columns=%d rows=%d",
        org_id,
        file.filename,
        len(suggestion.headers),
        suggestion.total_rows,
    )
    return MappingSuggestionResponse.from_domain(suggestion)


@router.post("/header-suggestions", response_model=HeaderSuggestionResponse)
def suggest_headers(
    file: UploadFile = Depends(get_csv_upload),
    org_id: uuid.UUID = Depends(get_org_id),
    orchestrator: LeadImportOrchestrator = Depends(get_lead_import_orchestrator),
) -> HeaderSuggestionResponse:
    matches, headers = orchestrator.suggest_standard_headers(_read_upload(file))
    return HeaderSuggestionResponse.from_domain(matches, headers)


@router.post("/import", response_model=LeadImportResponse)
def import_lead_list(
    file: UploadFile = Depends(get_csv_upload),
    name: str | None = Form(default=None, description="Lead list name"),
    mapped_headers: str | None = Form(
        default=None,
        alias="mappedHeaders",
        description="Optional JSON array of {columnName, mappedType}",
    ),
    org_id: uuid.UUID = Depends(get_org_id),
    orchestrator: LeadImportOrchestrator = Depends(get_lead_import_orchestrator),
    storage: FileStorageBackend = Depends(get_upload_storage),
) -> LeadImportResponse:
    """
    Import one CSV into a new lead list owned by the calling organization.
    """

    existing_mapping = parse_mapped_headers(mapped_headers)
    content = _read_upload(file)

    try:
        stored = storage.save(
            org_id=org_id,
            file_name=file.filename or "leads.csv",
            content=content,
            content_type=file.content_type,
        )
    except FileStorageError as exc:
        logger.warning("Failed to stage upload org_id=%s file=%s: %s", org_id, file.filename, exc)
        raise UploadStorageError() from exc

    result = orchestrator.import_leads(
        content,
        org_id,
        existing_mapping,
        name=name,
        file_name=stored.file_name,
        storage_path=stored.storage_path,
    )
    return LeadImportResponse.from_domain(result)


@router.get("/{lead_list_id}", response_model=LeadListDetailResponse)
def get_lead_list(
    lead_list_id: uuid.UUID,
    org_id: uuid.UUID = Depends(get_org_id),
    db: Session = Depends(get_db),
) -> LeadListDetailResponse:
    try:
        lead_list = LeadListRepository(db).get_for_org(lead_list_id, org_id)
    except LeadListNotFoundError as exc:
        raise LeadListNotFound(f"Lead list not found: {lead_list_id}. Check the id and your organization.") from exc

    return LeadListDetailResponse(
        id=lead_list.id,
        name=lead_list.name,
        org_id=lead_list.org_id,
        total_leads=lead_list.total_leads,
        is_active=lead_list.is_active,
        campaign_ids=list(lead_list.campaign_ids or []),
        mapped_headers=lead_list.mapped_headers,
        file_name=lead_list.file_name,
        created_at=lead_list.created_at,
        updated_at=lead_list.updated_at,
    )
