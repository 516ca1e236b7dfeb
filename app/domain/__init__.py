"""
app/domain package marker.
"""

from app.domain.lead_import import (
    ColumnMapping,
    ImportResult,
    ImportStage,
    LeadRecord,
    MappingSuggestion,
    RawRow,
    RawTable,
    SemanticType,
    VerificationReport,
)

__all__ = [
    "ColumnMapping",
    "ImportResult",
    "ImportStage",
    "LeadRecord",
    "MappingSuggestion",
    "RawRow",
    "RawTable",
    "SemanticType",
    "VerificationReport",
]
