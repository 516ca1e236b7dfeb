"""
app/schemas package marker.
"""

from app.schemas.lead_import import (
    ColumnMappingResponse,
    HeaderSuggestionResponse,
    LeadImportResponse,
    LeadListDetailResponse,
    MappingSuggestionResponse,
    parse_mapped_headers,
)

__all__ = [
    "ColumnMappingResponse",
    "HeaderSuggestionResponse",
    "LeadImportResponse",
    "LeadListDetailResponse",
    "MappingSuggestionResponse",
    "parse_mapped_headers",
]
