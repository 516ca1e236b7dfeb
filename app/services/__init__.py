"""
app/services package marker.
"""

from app.services.csv_reader import read_csv_bytes
from app.services.lead_import_orchestrator import (
    ImportSession,
    LeadImportOrchestrator,
    get_lead_import_orchestrator,
    get_upload_storage,
)
from app.services.lead_persistence import (
    LeadPersistence,
    PersistedLeadList,
    SQLAlchemyLeadPersistence,
)

__all__ = [
    "ImportSession",
    "LeadImportOrchestrator",
    "LeadPersistence",
    "PersistedLeadList",
    "SQLAlchemyLeadPersistence",
    "get_lead_import_orchestrator",
    "get_upload_storage",
    "read_csv_bytes",
]
