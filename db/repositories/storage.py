"""
Staging storage for uploaded lead CSV files.

An upload is written once by the HTTP layer and deleted by the import that
consumed it, whatever the import outcome.
"""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timezone
from mimetypes import guess_type
from pathlib import Path
from typing import Protocol

from db.repositories.errors import FileStorageError
from db.repositories.types import StoredFileMetadata


class FileStorageBackend(Protocol):
    """
    Backend holding uploads until their import finishes.
    """

    def save(
        self,
        *,
        org_id: uuid.UUID,
        file_name: str,
        content: bytes,
        content_type: str | None = None,
    ) -> StoredFileMetadata:
        ...

    def delete(self, *, storage_path: str) -> None:
        ...


def _sanitize_file_name(file_name: str) -> str:
    safe_name = Path(file_name).name.strip()
    if not safe_name or safe_name in {".", ".."}:
        raise FileStorageError("Invalid file name.")
    return safe_name


class LocalFileStorage:
    """
    Local filesystem staging area laid out as `<root>/<org_id>/<token>_<name>`.
    """

    def __init__(self, root_dir: str | Path = "data/uploads") -> None:
        self._root_dir = Path(root_dir)

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def save(
        self,
        *,
        org_id: uuid.UUID,
        file_name: str,
        content: bytes,
        content_type: str | None = None,
    ) -> StoredFileMetadata:
        safe_file_name = _sanitize_file_name(file_name)
        relative_path = Path(str(org_id)) / f"{uuid.uuid4().hex}_{safe_file_name}"
        target = self._root_dir / relative_path
        partial = target.with_name(f".{target.name}.part")

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            partial.write_bytes(content)
            partial.replace(target)
        except OSError as exc:
            partial.unlink(missing_ok=True)
            raise FileStorageError("Failed to write uploaded file to storage.") from exc

        return StoredFileMetadata(
            file_name=safe_file_name,
            storage_path=relative_path.as_posix(),
            mime_type=content_type or guess_type(safe_file_name)[0],
            file_size_bytes=len(content),
            checksum=hashlib.sha256(content).hexdigest(),
            stored_at=datetime.now(timezone.utc),
        )

    def delete(self, *, storage_path: str) -> None:
        """
        Remove one staged upload; missing files are ignored.

        Empty organization directories are pruned afterwards.
        """

        root = self._root_dir.resolve()
        target = (root / storage_path).resolve()
        if root not in target.parents:
            raise FileStorageError(f"Storage path escapes the upload root: {storage_path}")

        try:
            target.unlink(missing_ok=True)
            parent = target.parent
            if parent != root and not any(parent.iterdir()):
                parent.rmdir()
        except OSError as exc:
            raise FileStorageError("Failed to delete uploaded file from storage.") from exc
