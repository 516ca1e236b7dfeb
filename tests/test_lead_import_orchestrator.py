"""
tests/test_lead_import_orchestrator.py

End-to-end tests for LeadImportOrchestrator with in-memory collaborators.

No database is required: persistence and storage are fakes from
tests.helpers.
"""

from __future__ import annotations

import logging
import uuid

import pytest

from app.domain.lead_import import ColumnMapping, ImportStage, SemanticType
from app.errors import (
    EmptyOrInvalidCsvError,
    ImportCancelledError,
    MappingConflictError,
    NoMappedUrlColumnError,
    NoValidUrlsFoundError,
)
from app.services.lead_import_orchestrator import ImportSession, LeadImportOrchestrator
from db.repositories.errors import FileStorageError
from tests.helpers import FailingLeadPersistence, FakeLeadPersistence, RecordingStorage, csv_bytes

LEADS_CSV = csv_bytes(
    "Full Name,LinkedIn,Org",
    "Jane Doe,https://www.linkedin.com/in/jane-doe,Acme",
    "John Roe,linkedin.com/in/john-roe,Globex",
    "Ann Lee,https://linkedin.com/in/ann-lee/,Initech",
    "Bob Ray,http://www.linkedin.com/in/bob-ray,Umbrella",
)


@pytest.fixture()
def persistence() -> FakeLeadPersistence:
    return FakeLeadPersistence()


@pytest.fixture()
def storage() -> RecordingStorage:
    return RecordingStorage()


@pytest.fixture()
def orchestrator(persistence: FakeLeadPersistence, storage: RecordingStorage) -> LeadImportOrchestrator:
    return LeadImportOrchestrator(persistence=persistence, storage=storage)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


def test_imports_all_valid_rows(
    orchestrator: LeadImportOrchestrator,
    persistence: FakeLeadPersistence,
    org_id: uuid.UUID,
) -> None:
    result = orchestrator.import_leads(LEADS_CSV, org_id, name="Conference leads", file_name="leads.csv")

    types = {column.column_name: column.semantic_type for column in result.mappings}
    assert types == {
        "Full Name": SemanticType.DO_NOT_IMPORT,
        "LinkedIn": SemanticType.PROFILE_URL,
        "Org": SemanticType.DO_NOT_IMPORT,
    }
    assert result.report.valid_url_count == 4
    assert result.accepted_count == 4
    assert result.rejected_count == 0
    assert result.total_rows == 4
    assert result.stage is ImportStage.PERSISTED
    assert result.durably_saved
    assert result.persistence_error is None

    stored = persistence.lists[result.lead_list_id]
    assert stored["total_leads"] == 4
    assert stored["org_id"] == org_id
    assert stored["name"] == "Conference leads"
    assert [entry["mappedType"] for entry in stored["mapped_headers"]] == [
        "do_not_import",
        "profile_url",
        "do_not_import",
    ]
    assert persistence.calls[0]["file_name"] == "leads.csv"


def test_rejected_count_covers_invalid_and_missing_urls(
    orchestrator: LeadImportOrchestrator,
    org_id: uuid.UUID,
) -> None:
    content = csv_bytes(
        "First Name,LinkedIn",
        "Ann,https://linkedin.com/in/ann",
        "Bob,not-a-profile",
        "Cy,",
        "Dee,https://linkedin.com/in/dee",
    )

    result = orchestrator.import_leads(content, org_id)

    assert [record.first_name for record in result.records] == ["Ann", "Dee"]
    assert result.accepted_count == 2
    assert result.rejected_count == 2
    assert result.report.invalid_url_count == 1
    assert result.total_rows == 3
    assert result.original_row_count == 4


def test_total_rows_is_recounted_after_filtering(
    orchestrator: LeadImportOrchestrator,
    org_id: uuid.UUID,
) -> None:
    content = csv_bytes(
        "First Name,LinkedIn",
        "Ann,https://linkedin.com/in/ann",
        "Bob,https://example.com/bob",
    )

    result = orchestrator.import_leads(content, org_id)

    assert result.original_row_count == 2
    assert result.total_rows == 1
    assert result.accepted_count == 1
    assert result.rejected_count == 1


def test_default_list_name_is_used_for_blank_names(
    orchestrator: LeadImportOrchestrator,
    persistence: FakeLeadPersistence,
    org_id: uuid.UUID,
) -> None:
    orchestrator.import_leads(LEADS_CSV, org_id, name="   ")

    assert persistence.calls[0]["name"] == "Imported Leads"


def test_existing_mapping_overrides_classification(
    orchestrator: LeadImportOrchestrator,
    persistence: FakeLeadPersistence,
    org_id: uuid.UUID,
) -> None:
    existing = [
        ColumnMapping("LinkedIn", SemanticType.PROFILE_URL),
        ColumnMapping("Org", SemanticType.COMPANY),
    ]

    result = orchestrator.import_leads(LEADS_CSV, org_id, existing)

    assert [column.semantic_type for column in result.mappings] == [
        SemanticType.DO_NOT_IMPORT,
        SemanticType.PROFILE_URL,
        SemanticType.COMPANY,
    ]
    assert result.mappings[2].sample_values == ("Acme", "Globex", "Initech", "Umbrella")
    assert [record.company for record in result.records] == ["Acme", "Globex", "Initech", "Umbrella"]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


def test_missing_url_column_fails_and_writes_nothing(
    orchestrator: LeadImportOrchestrator,
    persistence: FakeLeadPersistence,
    storage: RecordingStorage,
    org_id: uuid.UUID,
) -> None:
    content = csv_bytes("First Name,Company", "Jane,Acme")

    with pytest.raises(NoMappedUrlColumnError) as exc_info:
        orchestrator.import_leads(content, org_id, storage_path="org/tmp.csv")

    assert "LinkedIn URL" in exc_info.value.message
    assert persistence.calls == []
    assert storage.deleted == ["org/tmp.csv"]


def test_no_valid_urls_fails(
    orchestrator: LeadImportOrchestrator,
    persistence: FakeLeadPersistence,
    org_id: uuid.UUID,
) -> None:
    content = csv_bytes("Name,LinkedIn", "Jane,n/a", "John,unknown")

    with pytest.raises(NoValidUrlsFoundError):
        orchestrator.import_leads(content, org_id)

    assert persistence.calls == []


def test_empty_file_fails(orchestrator: LeadImportOrchestrator, org_id: uuid.UUID) -> None:
    with pytest.raises(EmptyOrInvalidCsvError):
        orchestrator.import_leads(b"", org_id)


def test_existing_mapping_with_unknown_column_is_rejected(
    orchestrator: LeadImportOrchestrator,
    org_id: uuid.UUID,
) -> None:
    existing = [ColumnMapping("Profile", SemanticType.PROFILE_URL)]

    with pytest.raises(MappingConflictError) as exc_info:
        orchestrator.import_leads(LEADS_CSV, org_id, existing)

    assert exc_info.value.errors[0].column_name == "Profile"


def test_existing_mapping_with_duplicate_type_is_rejected(
    orchestrator: LeadImportOrchestrator,
    org_id: uuid.UUID,
) -> None:
    existing = [
        ColumnMapping("LinkedIn", SemanticType.PROFILE_URL),
        ColumnMapping("Org", SemanticType.PROFILE_URL),
    ]

    with pytest.raises(MappingConflictError):
        orchestrator.import_leads(LEADS_CSV, org_id, existing)


def test_cancellation_before_persistence(
    orchestrator: LeadImportOrchestrator,
    persistence: FakeLeadPersistence,
    storage: RecordingStorage,
    org_id: uuid.UUID,
) -> None:
    with pytest.raises(ImportCancelledError):
        orchestrator.import_leads(
            LEADS_CSV,
            org_id,
            storage_path="org/tmp.csv",
            should_cancel=lambda: True,
        )

    assert persistence.calls == []
    assert storage.deleted == ["org/tmp.csv"]


# ---------------------------------------------------------------------------
# Persistence fallback and cleanup
# ---------------------------------------------------------------------------


def test_persistence_failure_returns_local_records(
    storage: RecordingStorage,
    org_id: uuid.UUID,
    caplog: pytest.LogCaptureFixture,
) -> None:
    failing = FailingLeadPersistence()
    orchestrator = LeadImportOrchestrator(persistence=failing, storage=storage)

    with caplog.at_level(logging.ERROR, logger="app.services.lead_import_orchestrator"):
        result = orchestrator.import_leads(LEADS_CSV, org_id, storage_path="org/tmp.csv")

    assert failing.attempts == 1
    assert not result.durably_saved
    assert result.lead_list_id is None
    assert result.stage is ImportStage.FILTERED
    assert result.accepted_count == 4
    assert len(result.records) == 4
    assert result.persistence_error
    assert storage.deleted == ["org/tmp.csv"]
    assert any(record.exc_info for record in caplog.records)


def test_unexpected_persistence_error_also_falls_back(org_id: uuid.UUID) -> None:
    orchestrator = LeadImportOrchestrator(persistence=FailingLeadPersistence(RuntimeError("boom")))

    result = orchestrator.import_leads(LEADS_CSV, org_id)

    assert not result.durably_saved
    assert "retry" in (result.persistence_error or "").lower()


def test_cleanup_failure_does_not_change_outcome(
    persistence: FakeLeadPersistence,
    org_id: uuid.UUID,
) -> None:
    class BrokenStorage(RecordingStorage):
        def delete(self, *, storage_path: str) -> None:
            raise FileStorageError("disk gone")

    orchestrator = LeadImportOrchestrator(persistence=persistence, storage=BrokenStorage())

    result = orchestrator.import_leads(LEADS_CSV, org_id, storage_path="org/tmp.csv")

    assert result.durably_saved


# ---------------------------------------------------------------------------
# Suggestions, edits, session
# ---------------------------------------------------------------------------


def test_suggest_mappings_returns_preview(orchestrator: LeadImportOrchestrator) -> None:
    lines = ["LinkedIn,First Name"] + [f"https://linkedin.com/in/p{index},Name{index}" for index in range(8)]

    suggestion = orchestrator.suggest_mappings(csv_bytes(*lines))

    assert suggestion.total_rows == 8
    assert suggestion.headers == ("LinkedIn", "First Name")
    assert len(suggestion.preview_data) == 5
    assert suggestion.preview_data[0] == {"LinkedIn": "https://linkedin.com/in/p0", "First Name": "Name0"}
    assert [column.semantic_type for column in suggestion.mappings] == [
        SemanticType.PROFILE_URL,
        SemanticType.FIRST_NAME,
    ]


def test_suggest_standard_headers(orchestrator: LeadImportOrchestrator) -> None:
    matches, headers = orchestrator.suggest_standard_headers(LEADS_CSV)

    assert headers == ("Full Name", "LinkedIn", "Org")
    assert matches[0].standard_header == "profile_url"
    assert matches[0].matched_header == "LinkedIn"


def test_edit_mapping_delegates_to_validator(orchestrator: LeadImportOrchestrator) -> None:
    suggestion = orchestrator.suggest_mappings(LEADS_CSV)

    edited = orchestrator.edit_mapping(suggestion.mappings, 2, SemanticType.COMPANY)

    assert edited[2].semantic_type is SemanticType.COMPANY
    with pytest.raises(MappingConflictError):
        orchestrator.edit_mapping(edited, 0, SemanticType.PROFILE_URL)


def test_import_session_logs_transitions(org_id: uuid.UUID, caplog: pytest.LogCaptureFixture) -> None:
    session = ImportSession(org_id=org_id)

    with caplog.at_level(logging.INFO, logger="app.services.lead_import_orchestrator"):
        session.advance(ImportStage.PARSED)
        session.fail(EmptyOrInvalidCsvError())

    assert session.history == [ImportStage.UPLOADED, ImportStage.PARSED, ImportStage.FAILED]
    assert "uploaded -> parsed" in caplog.text
    with pytest.raises(RuntimeError):
        session.advance(ImportStage.MAPPED)
