"""
app/schemas/lead_import.py

Request parsing and response schemas for lead list endpoints.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.domain.lead_import import (
    ColumnMapping,
    ImportResult,
    MappingSuggestion,
    SemanticType,
    StandardHeaderMatch,
)
from app.errors import InvalidMappingPayloadError


class _AliasedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class MappedColumnPayload(_AliasedModel):
    """
    One `{columnName, mappedType}` entry of a submitted mapping.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    column_name: str = Field(alias="columnName", min_length=1)
    mapped_type: str = Field(alias="mappedType", min_length=1)


class StandardHeaderPayload(BaseModel):
    """
    One `{standard_header, matched_header}` entry from the header-suggestion flow.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    standard_header: str = Field(min_length=1)
    matched_header: str | None = None


def parse_mapped_headers(raw: str | None) -> list[ColumnMapping] | None:
    """
    Decode the `mappedHeaders` form field into column mappings.

    Returns None when the field is absent or blank so the importer classifies
    headers itself. Raises InvalidMappingPayloadError for malformed JSON,
    malformed entries, or unknown type labels.
    """

    if raw is None or not raw.strip():
        return None

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidMappingPayloadError() from exc
    if not isinstance(payload, list):
        raise InvalidMappingPayloadError()

    mappings: list[ColumnMapping] = []
    for index, item in enumerate(payload, start=1):
        if not isinstance(item, dict):
            raise InvalidMappingPayloadError(
                f"mappedHeaders entry #{index} must be an object with columnName and mappedType."
            )
        try:
            if "standard_header" in item:
                standard = StandardHeaderPayload.model_validate(item)
                if not standard.matched_header:
                    continue
                mappings.append(
                    ColumnMapping(
                        column_name=standard.matched_header,
                        semantic_type=SemanticType.parse(standard.standard_header),
                    )
                )
            else:
                column = MappedColumnPayload.model_validate(item)
                mappings.append(
                    ColumnMapping(
                        column_name=column.column_name,
                        semantic_type=SemanticType.parse(column.mapped_type),
                    )
                )
        except ValidationError as exc:
            raise InvalidMappingPayloadError(
                f"mappedHeaders entry #{index} is malformed: {exc.error_count()} field error(s). "
                "Each entry needs columnName and mappedType."
            ) from exc
        except ValueError as exc:
            allowed = ", ".join(semantic_type.value for semantic_type in SemanticType)
            raise InvalidMappingPayloadError(
                f"mappedHeaders entry #{index}: {exc} Use one of: {allowed}."
            ) from exc

    return mappings


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ColumnMappingResponse(_AliasedModel):
    column_name: str = Field(alias="columnName")
    mapped_type: str = Field(alias="mappedType")
    samples: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, column: ColumnMapping) -> ColumnMappingResponse:
        return cls(
            column_name=column.column_name,
            mapped_type=column.semantic_type.value,
            samples=list(column.sample_values),
        )


class MappingSuggestionResponse(_AliasedModel):
    mappings: list[ColumnMappingResponse]
    preview_data: list[dict[str, str]] = Field(default_factory=list, alias="previewData")
    total_rows: int = Field(..., ge=0, alias="totalRows")
    headers: list[str]

    @classmethod
    def from_domain(cls, suggestion: MappingSuggestion) -> MappingSuggestionResponse:
        return cls(
            mappings=[ColumnMappingResponse.from_domain(column) for column in suggestion.mappings],
            preview_data=[dict(row) for row in suggestion.preview_data],
            total_rows=suggestion.total_rows,
            headers=list(suggestion.headers),
        )


class StandardHeaderMatchResponse(BaseModel):
    standard_header: str
    matched_header: str | None = None


class HeaderSuggestionResponse(_AliasedModel):
    mapped_headers: list[StandardHeaderMatchResponse] = Field(alias="mappedHeaders")
    headers: list[str]

    @classmethod
    def from_domain(
        cls,
        matches: tuple[StandardHeaderMatch, ...],
        headers: tuple[str, ...],
    ) -> HeaderSuggestionResponse:
        return cls(
            mapped_headers=[
                StandardHeaderMatchResponse(
                    standard_header=match.standard_header,
                    matched_header=match.matched_header,
                )
                for match in matches
            ],
            headers=list(headers),
        )


class LeadImportResponse(_AliasedModel):
    """
    Summary of one import; warning is set when leads were not durably saved.
    """

    lead_list_id: UUID | None = Field(default=None, alias="leadListId")
    processed_leads: list[dict[str, Any]] = Field(default_factory=list, alias="processedLeads")
    total_rows: int = Field(..., ge=0, alias="totalRows")
    original_row_count: int = Field(..., ge=0, alias="originalRowCount")
    accepted_count: int = Field(..., ge=0, alias="acceptedCount")
    rejected_count: int = Field(..., ge=0, alias="rejectedCount")
    mappings: list[ColumnMappingResponse]
    report: dict[str, Any]
    durably_saved: bool = Field(alias="durablySaved")
    warning: str | None = None

    @classmethod
    def from_domain(cls, result: ImportResult) -> LeadImportResponse:
        return cls(
            lead_list_id=result.lead_list_id,
            processed_leads=[record.to_dict() for record in result.records],
            total_rows=result.total_rows,
            original_row_count=result.original_row_count,
            accepted_count=result.accepted_count,
            rejected_count=max(0, result.rejected_count),
            mappings=[ColumnMappingResponse.from_domain(column) for column in result.mappings],
            report=result.report.to_dict(),
            durably_saved=result.durably_saved,
            warning=result.persistence_error,
        )


class LeadListDetailResponse(_AliasedModel):
    id: UUID
    name: str
    org_id: UUID = Field(alias="orgId")
    total_leads: int = Field(..., ge=0, alias="totalLeads")
    is_active: bool = Field(alias="isActive")
    campaign_ids: list[str] = Field(default_factory=list, alias="campaignIds")
    mapped_headers: list[dict[str, Any]] | None = Field(default=None, alias="mappedHeaders")
    file_name: str | None = Field(default=None, alias="fileName")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
