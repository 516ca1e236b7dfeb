"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

import uuid

from fastapi import File, Header, UploadFile

from app.errors import InvalidOrgIdError, InvalidUploadError, MissingOrgIdError

CSV_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
}


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_csv_filename = filename.endswith(".csv")
    is_csv_content_type = content_type in CSV_CONTENT_TYPES

    if not is_csv_filename and not is_csv_content_type:
        raise InvalidUploadError()

    return file


def get_org_id(x_org_id: str | None = Header(default=None, alias="X-Org-Id")) -> uuid.UUID:
    """
    Resolve the calling organization from the X-Org-Id header.
    """

    if not x_org_id or not x_org_id.strip():
        raise MissingOrgIdError()
    try:
        return uuid.UUID(x_org_id.strip())
    except ValueError as exc:
        raise InvalidOrgIdError() from exc
