"""
app/errors.py

Lead import error taxonomy.

Every error carries a user-facing message that names the corrective action
and the HTTP status the API layer responds with.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence


@dataclass(frozen=True)
class MappingErrorDetail:
    """
    Structured mapping error detail.
    """

    code: str
    message: str
    column_name: str | None = None
    semantic_type: str | None = None
    context: dict[str, Any] | None = None


class LeadImportError(Exception):
    """
    Base class for all user-facing import failures.
    """

    status_code: int = 400
    default_message: str = "Lead import failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class EmptyOrInvalidCsvError(LeadImportError):
    """
    Raised when the upload cannot be decoded/parsed or holds no data rows.
    """

    status_code = 400
    default_message = "CSV file is empty or invalid format. Upload a UTF-8 CSV with a header row."


class NoMappedUrlColumnError(LeadImportError):
    """
    Raised when no column is mapped as LinkedIn URL.
    """

    status_code = 422
    default_message = (
        "No LinkedIn URL column mapped. Please map at least one column as LinkedIn URL."
    )


class NoValidUrlsFoundError(LeadImportError):
    """
    Raised when a URL column is mapped but none of its values is a LinkedIn URL.
    """

    status_code = 422
    default_message = (
        "No valid LinkedIn URLs were found. Please check your column mapping."
    )


class MappingConflictError(LeadImportError):
    """
    Raised when a mapping assigns a single-use type twice or does not fit the file.
    """

    status_code = 409
    default_message = "Column mapping is invalid."

    def __init__(
        self,
        message: str | None = None,
        *,
        errors: Sequence[MappingErrorDetail] = (),
    ) -> None:
        super().__init__(message)
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "details": [
                {
                    "code": error.code,
                    "message": error.message,
                    "column_name": error.column_name,
                    "semantic_type": error.semantic_type,
                    "context": error.context,
                }
                for error in self.errors
            ],
        }


class InvalidMappingPayloadError(LeadImportError):
    """
    Raised when a submitted mappedHeaders payload cannot be decoded.
    """

    status_code = 400
    default_message = "mappedHeaders must be a JSON array of column mappings."


class PersistenceFailureError(LeadImportError):
    """
    Raised when the lead list cannot be written to the database.
    """

    status_code = 503
    default_message = "Leads could not be saved. They are kept locally; retry the import to save them."


class ImportCancelledError(LeadImportError):
    """
    Raised when the caller cancels the import before persistence.
    """

    status_code = 499
    default_message = "Import was cancelled before any leads were saved."


class InvalidUploadError(LeadImportError):
    """
    Raised when the uploaded file is not a CSV.
    """

    status_code = 400
    default_message = "Only CSV files are allowed. Upload a .csv file."


class MissingOrgIdError(LeadImportError):
    status_code = 401
    default_message = "X-Org-Id header is required."


class InvalidOrgIdError(LeadImportError):
    status_code = 400
    default_message = "X-Org-Id header must be a valid organization UUID."


class UploadStorageError(LeadImportError):
    """
    Raised when the upload cannot be staged before import.
    """

    status_code = 503
    default_message = "Unable to store the uploaded file. Retry the upload."


class LeadListNotFound(LeadImportError):
    status_code = 404
    default_message = "Lead list not found."
