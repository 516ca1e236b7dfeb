"""
app/services/lead_import_orchestrator.py

Service layer for the lead CSV import workflow.

An import session moves through

    UPLOADED → PARSED → MAPPED → VERIFIED → FILTERED → PERSISTED

and any user-facing error moves it to FAILED. When the authoritative
database write fails, the session stops at FILTERED and the caller receives
the locally normalized records flagged as not durably saved, together with a
non-fatal warning. Temporary upload files are released on every path.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from functools import lru_cache

from app.config import get_lead_import_settings
from app.domain.lead_import import (
    ColumnMapping,
    ImportResult,
    ImportStage,
    MappingSuggestion,
    RawTable,
    SemanticType,
    StandardHeaderMatch,
    VerificationReport,
)
from app.errors import (
    ImportCancelledError,
    LeadImportError,
    MappingConflictError,
    MappingErrorDetail,
    NoValidUrlsFoundError,
    PersistenceFailureError,
)
from app.mappers.header_classifier import HeaderClassifier
from app.mappers.row_normalizer import RowNormalizer
from app.services.csv_reader import read_csv_bytes
from app.services.lead_persistence import LeadPersistence, SQLAlchemyLeadPersistence
from app.validators.content_verifier import ContentVerifier
from app.validators.mapping_validator import MappingValidator
from db.repositories.errors import FileStorageError
from db.repositories.storage import FileStorageBackend, LocalFileStorage

logger = logging.getLogger(__name__)

DEFAULT_LIST_NAME = "Imported Leads"


class ImportSession:
    """
    Tracks the stage of one import and logs every transition.
    """

    def __init__(self, *, org_id: uuid.UUID) -> None:
        self.session_id = uuid.uuid4().hex[:12]
        self.org_id = org_id
        self.stage = ImportStage.UPLOADED
        self.history: list[ImportStage] = [ImportStage.UPLOADED]

    def advance(self, stage: ImportStage) -> None:
        if self.stage is ImportStage.FAILED:
            raise RuntimeError(f"Import session {self.session_id} already failed.")
        logger.info(
            "Lead import session=%s org_id=%s stage %s -> %s",
            self.session_id,
            self.org_id,
            self.stage.value,
            stage.value,
        )
        self.stage = stage
        self.history.append(stage)

    def fail(self, error: LeadImportError) -> None:
        logger.warning(
            "Lead import session=%s org_id=%s failed at stage=%s error=%s: %s",
            self.session_id,
            self.org_id,
            self.stage.value,
            type(error).__name__,
            error.message,
        )
        self.stage = ImportStage.FAILED
        self.history.append(ImportStage.FAILED)


class LeadImportOrchestrator:
    """
    Coordinates CSV parsing, column mapping, verification, normalization,
    and persistence for one uploaded lead file.
    """

    def __init__(
        self,
        *,
        persistence: LeadPersistence,
        storage: FileStorageBackend | None = None,
        classifier: HeaderClassifier | None = None,
        verifier: ContentVerifier | None = None,
        normalizer: RowNormalizer | None = None,
        mapping_validator: MappingValidator | None = None,
        classifier_sample_limit: int = 5,
        preview_rows: int = 5,
    ) -> None:
        self._persistence = persistence
        self._storage = storage
        self._classifier = classifier or HeaderClassifier()
        self._verifier = verifier or ContentVerifier()
        self._normalizer = normalizer or RowNormalizer()
        self._mapping_validator = mapping_validator or MappingValidator()
        self._classifier_sample_limit = max(1, classifier_sample_limit)
        self._preview_rows = max(1, preview_rows)

    # ------------------------------------------------------------------
    # Mapping suggestions
    # ------------------------------------------------------------------

    def suggest_mappings(
        self,
        file_bytes: bytes,
        *,
        storage_path: str | None = None,
    ) -> MappingSuggestion:
        """
        Classify the file's headers without importing anything.
        """

        try:
            table = read_csv_bytes(file_bytes)
            mappings = self.classify(table)
        finally:
            self._release_upload(storage_path)

        return MappingSuggestion(
            mappings=mappings,
            preview_data=tuple(row.to_dict() for row in table.rows[: self._preview_rows]),
            total_rows=table.row_count,
            headers=table.headers,
        )

    def suggest_standard_headers(
        self,
        file_bytes: bytes,
        *,
        storage_path: str | None = None,
    ) -> tuple[tuple[StandardHeaderMatch, ...], tuple[str, ...]]:
        """
        Match the standard lead fields to headers; returns (matches, headers).
        """

        try:
            table = read_csv_bytes(file_bytes)
            matches = self._classifier.suggest_standard_headers(table.headers, table.rows)
        finally:
            self._release_upload(storage_path)
        return matches, table.headers

    def classify(self, table: RawTable) -> tuple[ColumnMapping, ...]:
        return self._classifier.classify(
            table.headers,
            table.rows,
            limit_samples=self._classifier_sample_limit,
        )

    def edit_mapping(
        self,
        mapping: Sequence[ColumnMapping],
        column_index: int,
        new_type: SemanticType,
    ) -> tuple[ColumnMapping, ...]:
        """
        Apply one user edit; raises MappingConflictError instead of overwriting.
        """

        return self._mapping_validator.apply_edit(mapping, column_index, new_type)

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_leads(
        self,
        file_bytes: bytes,
        org_id: uuid.UUID,
        existing_mapping: Sequence[ColumnMapping] | None = None,
        *,
        name: str | None = None,
        file_name: str | None = None,
        storage_path: str | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> ImportResult:
        """
        Run one import session end to end.

        Raises a LeadImportError subclass when the import cannot proceed.
        Persistence failures do not raise: the returned result carries the
        locally normalized records with durably_saved=False.
        """

        session = ImportSession(org_id=org_id)
        try:
            return self._run_import(
                session=session,
                file_bytes=file_bytes,
                org_id=org_id,
                existing_mapping=existing_mapping,
                name=(name or "").strip() or DEFAULT_LIST_NAME,
                file_name=file_name,
                should_cancel=should_cancel,
            )
        except LeadImportError as exc:
            session.fail(exc)
            raise
        finally:
            self._release_upload(storage_path)

    def _run_import(
        self,
        *,
        session: ImportSession,
        file_bytes: bytes,
        org_id: uuid.UUID,
        existing_mapping: Sequence[ColumnMapping] | None,
        name: str,
        file_name: str | None,
        should_cancel: Callable[[], bool] | None,
    ) -> ImportResult:
        table = read_csv_bytes(file_bytes)
        session.advance(ImportStage.PARSED)

        if existing_mapping is None:
            mappings = self.classify(table)
        else:
            mappings = self.align_mapping(table, existing_mapping)
        self._mapping_validator.validate(mapping=mappings, source_headers=table.headers)
        session.advance(ImportStage.MAPPED)

        report = self._verify(table, mappings)
        session.advance(ImportStage.VERIFIED)

        reject_rows = report.rejected_row_indexes
        original_row_count = table.row_count
        total_rows = original_row_count - len(reject_rows)
        session.advance(ImportStage.FILTERED)
        logger.info(
            "Lead import session=%s filtered rows original=%d rejected_by_verification=%d total=%d",
            session.session_id,
            original_row_count,
            len(reject_rows),
            total_rows,
        )

        records = tuple(self._normalizer.normalize(table, mappings, reject_rows))

        if should_cancel is not None and should_cancel():
            raise ImportCancelledError()

        try:
            persisted = self._persistence.persist_lead_list(
                org_id=org_id,
                name=name,
                mappings=mappings,
                records=records,
                file_name=file_name,
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Lead import session=%s persistence failed; returning local records count=%d",
                session.session_id,
                len(records),
            )
            warning = exc.message if isinstance(exc, PersistenceFailureError) else PersistenceFailureError.default_message
            return ImportResult(
                lead_list_id=None,
                accepted_count=len(records),
                rejected_count=original_row_count - len(records),
                total_rows=total_rows,
                original_row_count=original_row_count,
                records=records,
                mappings=mappings,
                report=report,
                stage=session.stage,
                durably_saved=False,
                persistence_error=warning,
            )

        session.advance(ImportStage.PERSISTED)
        return ImportResult(
            lead_list_id=persisted.lead_list_id,
            accepted_count=persisted.inserted_count,
            rejected_count=original_row_count - persisted.inserted_count,
            total_rows=total_rows,
            original_row_count=original_row_count,
            records=records,
            mappings=mappings,
            report=report,
            stage=session.stage,
        )

    def _verify(self, table: RawTable, mappings: Sequence[ColumnMapping]) -> VerificationReport:
        report = self._verifier.verify(table, mappings)
        if report.no_valid_urls:
            raise NoValidUrlsFoundError()
        return report

    def align_mapping(
        self,
        table: RawTable,
        existing_mapping: Sequence[ColumnMapping],
    ) -> tuple[ColumnMapping, ...]:
        """
        Lay a previously edited mapping over the parsed headers.

        Entries are matched to headers by column name, in order, so duplicate
        header texts consume entries one by one. Headers without an entry are
        not imported; entries naming unknown columns are rejected.
        """

        pending: dict[str, list[SemanticType]] = {}
        for column in existing_mapping:
            pending.setdefault(column.column_name, []).append(column.semantic_type)

        aligned: list[ColumnMapping] = []
        for position, header in enumerate(table.headers):
            queue = pending.get(header)
            semantic_type = queue.pop(0) if queue else SemanticType.DO_NOT_IMPORT
            aligned.append(
                ColumnMapping(
                    column_name=header,
                    semantic_type=semantic_type,
                    sample_values=self._classifier.sample_values(table.rows, position),
                )
            )

        unknown = sorted(name for name, queue in pending.items() if queue)
        if unknown:
            raise MappingConflictError(
                "Column mapping refers to columns that are not in the uploaded file: "
                f"{', '.join(unknown)}. Re-run column mapping for this file.",
                errors=[
                    MappingErrorDetail(
                        code="unknown_source_column",
                        message="Mapped column does not exist in CSV headers.",
                        column_name=column_name,
                        context={"source_headers": list(table.headers)},
                    )
                    for column_name in unknown
                ],
            )
        return tuple(aligned)

    def _release_upload(self, storage_path: str | None) -> None:
        if not storage_path or self._storage is None:
            return
        try:
            self._storage.delete(storage_path=storage_path)
        except FileStorageError as exc:
            logger.warning(
                "Failed to remove temporary upload path=%s: %s",
                storage_path,
                exc,
            )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_lead_import_orchestrator() -> LeadImportOrchestrator:
    """
    Build and cache the orchestrator with env-driven settings.
    """

    settings = get_lead_import_settings()
    return LeadImportOrchestrator(
        persistence=SQLAlchemyLeadPersistence(batch_size=settings.persist_batch_size),
        storage=get_upload_storage(),
        verifier=ContentVerifier(
            max_reported_invalid_urls=settings.max_reported_invalid_urls,
            log_invalid_urls=settings.log_invalid_urls,
        ),
        classifier_sample_limit=settings.classifier_sample_limit,
        preview_rows=settings.preview_rows,
    )


@lru_cache(maxsize=1)
def get_upload_storage() -> LocalFileStorage:
    return LocalFileStorage(get_lead_import_settings().upload_storage_dir)
