"""
Repository layer exports.
"""

from db.repositories.errors import FileStorageError, LeadListNotFoundError, LeadRepositoryError
from db.repositories.lead_list_repository import LeadListRepository, prepare_entry_payloads
from db.repositories.storage import FileStorageBackend, LocalFileStorage
from db.repositories.types import LeadEntryCreate, LeadListCreate, StoredFileMetadata

__all__ = [
    "LeadListRepository",
    "prepare_entry_payloads",
    "LeadEntryCreate",
    "LeadListCreate",
    "StoredFileMetadata",
    "FileStorageBackend",
    "LocalFileStorage",
    "LeadRepositoryError",
    "FileStorageError",
    "LeadListNotFoundError",
]
