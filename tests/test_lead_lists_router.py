"""
tests/test_lead_lists_router.py

HTTP tests for the /lead-lists router using FastAPI's TestClient with
dependency overrides; uploads go to a temporary LocalFileStorage.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.exception_handlers import register_exception_handlers
from app.api.routers.lead_lists import router
from app.services.lead_import_orchestrator import (
    LeadImportOrchestrator,
    get_lead_import_orchestrator,
    get_upload_storage,
)
from db.repositories.errors import FileStorageError
from db.repositories.storage import LocalFileStorage
from db.session import get_db
from tests.helpers import FailingLeadPersistence, FakeLeadPersistence, csv_bytes

LEADS_CSV = csv_bytes(
    "Full Name,LinkedIn,Org",
    "Jane Doe,https://www.linkedin.com/in/jane-doe,Acme",
    "John Roe,https://www.linkedin.com/in/john-roe,Globex",
)


class _EmptyResult:
    def scalars(self) -> "_EmptyResult":
        return self

    def first(self) -> None:
        return None


class _EmptySession:
    def execute(self, statement: object) -> _EmptyResult:
        return _EmptyResult()


class _BrokenStorage:
    def save(self, **kwargs: object) -> None:
        raise FileStorageError("disk full")

    def delete(self, *, storage_path: str) -> None:
        return None


def _build_client(tmp_path: Path, persistence: object) -> TestClient:
    storage = LocalFileStorage(tmp_path)
    orchestrator = LeadImportOrchestrator(persistence=persistence, storage=storage)

    application = FastAPI()
    register_exception_handlers(application)
    application.include_router(router)
    application.dependency_overrides[get_lead_import_orchestrator] = lambda: orchestrator
    application.dependency_overrides[get_upload_storage] = lambda: storage
    application.dependency_overrides[get_db] = lambda: _EmptySession()
    return TestClient(application)


@pytest.fixture()
def persistence() -> FakeLeadPersistence:
    return FakeLeadPersistence()


@pytest.fixture()
def client(tmp_path: Path, persistence: FakeLeadPersistence) -> TestClient:
    return _build_client(tmp_path, persistence)


@pytest.fixture()
def headers(org_id: uuid.UUID) -> dict[str, str]:
    return {"X-Org-Id": str(org_id)}


def _stored_files(root: Path) -> list[Path]:
    return [path for path in root.rglob("*") if path.is_file()]


def test_mapping_suggestions(client: TestClient, headers: dict[str, str]) -> None:
    response = client.post(
        "/lead-lists/mapping-suggestions",
        files={"file": ("leads.csv", LEADS_CSV, "text/csv")},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["totalRows"] == 2
    assert body["headers"] == ["Full Name", "LinkedIn", "Org"]
    assert body["mappings"][1] == {
        "columnName": "LinkedIn",
        "mappedType": "profile_url",
        "samples": [
            "https://www.linkedin.com/in/jane-doe",
            "https://www.linkedin.com/in/john-roe",
        ],
    }
    assert body["previewData"][0]["Org"] == "Acme"


def test_header_suggestions(client: TestClient, headers: dict[str, str]) -> None:
    response = client.post(
        "/lead-lists/header-suggestions",
        files={"file": ("leads.csv", LEADS_CSV, "text/csv")},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["mappedHeaders"][0] == {"standard_header": "profile_url", "matched_header": "LinkedIn"}


def test_import_persists_and_cleans_up_upload(
    client: TestClient,
    headers: dict[str, str],
    persistence: FakeLeadPersistence,
    tmp_path: Path,
    org_id: uuid.UUID,
) -> None:
    response = client.post(
        "/lead-lists/import",
        files={"file": ("leads.csv", LEADS_CSV, "text/csv")},
        data={"name": "Conference"},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["acceptedCount"] == 2
    assert body["rejectedCount"] == 0
    assert body["totalRows"] == 2
    assert body["originalRowCount"] == 2
    assert body["durablySaved"] is True
    assert body["warning"] is None
    assert body["processedLeads"][0]["profileUrl"] == "https://www.linkedin.com/in/jane-doe"
    assert uuid.UUID(body["leadListId"]) in persistence.lists
    assert persistence.calls[0]["org_id"] == org_id
    assert persistence.calls[0]["file_name"] == "leads.csv"
    assert _stored_files(tmp_path) == []


def test_import_with_submitted_mapping(
    client: TestClient,
    headers: dict[str, str],
) -> None:
    mapped_headers = json.dumps(
        [
            {"columnName": "LinkedIn", "mappedType": "linkedin-url"},
            {"columnName": "Org", "mappedType": "company"},
        ]
    )

    response = client.post(
        "/lead-lists/import",
        files={"file": ("leads.csv", LEADS_CSV, "text/csv")},
        data={"name": "Edited", "mappedHeaders": mapped_headers},
        headers=headers,
    )

    assert response.status_code == 200
    assert [lead["company"] for lead in response.json()["processedLeads"]] == ["Acme", "Globex"]


def test_import_without_url_column_returns_error(
    client: TestClient,
    headers: dict[str, str],
    tmp_path: Path,
) -> None:
    response = client.post(
        "/lead-lists/import",
        files={"file": ("leads.csv", csv_bytes("First Name,Company", "Jane,Acme"), "text/csv")},
        headers=headers,
    )

    assert response.status_code == 422
    assert "LinkedIn URL" in response.json()["error"]
    assert _stored_files(tmp_path) == []


def test_import_with_malformed_mapping_returns_error(client: TestClient, headers: dict[str, str]) -> None:
    response = client.post(
        "/lead-lists/import",
        files={"file": ("leads.csv", LEADS_CSV, "text/csv")},
        data={"mappedHeaders": "{broken"},
        headers=headers,
    )

    assert response.status_code == 400
    assert "mappedHeaders" in response.json()["error"]


def test_import_with_conflicting_mapping_returns_details(client: TestClient, headers: dict[str, str]) -> None:
    mapped_headers = json.dumps(
        [
            {"columnName": "LinkedIn", "mappedType": "profile_url"},
            {"columnName": "Org", "mappedType": "profile_url"},
        ]
    )

    response = client.post(
        "/lead-lists/import",
        files={"file": ("leads.csv", LEADS_CSV, "text/csv")},
        data={"mappedHeaders": mapped_headers},
        headers=headers,
    )

    assert response.status_code == 409
    assert response.json()["details"][0]["code"] == "duplicate_single_use_type"


def test_import_falls_back_when_database_is_down(tmp_path: Path, headers: dict[str, str]) -> None:
    client = _build_client(tmp_path, FailingLeadPersistence())

    response = client.post(
        "/lead-lists/import",
        files={"file": ("leads.csv", LEADS_CSV, "text/csv")},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["durablySaved"] is False
    assert body["leadListId"] is None
    assert body["warning"]
    assert len(body["processedLeads"]) == 2


def test_empty_csv_returns_error(client: TestClient, headers: dict[str, str]) -> None:
    response = client.post(
        "/lead-lists/mapping-suggestions",
        files={"file": ("leads.csv", b"", "text/csv")},
        headers=headers,
    )

    assert response.status_code == 400
    assert "error" in response.json()


def test_non_csv_upload_is_rejected(client: TestClient, headers: dict[str, str]) -> None:
    response = client.post(
        "/lead-lists/import",
        files={"file": ("leads.txt", b"a,b\n", "text/plain")},
        headers=headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Only CSV files are allowed. Upload a .csv file."}


def test_missing_org_header_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/lead-lists/mapping-suggestions",
        files={"file": ("leads.csv", LEADS_CSV, "text/csv")},
    )

    assert response.status_code == 401
    assert "X-Org-Id" in response.json()["error"]


def test_malformed_org_header_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/lead-lists/mapping-suggestions",
        files={"file": ("leads.csv", LEADS_CSV, "text/csv")},
        headers={"X-Org-Id": "acme"},
    )

    assert response.status_code == 400
    assert "UUID" in response.json()["error"]


def test_storage_failure_returns_error(tmp_path: Path, headers: dict[str, str]) -> None:
    client = _build_client(tmp_path, FakeLeadPersistence())
    client.app.dependency_overrides[get_upload_storage] = lambda: _BrokenStorage()

    response = client.post(
        "/lead-lists/import",
        files={"file": ("leads.csv", LEADS_CSV, "text/csv")},
        headers=headers,
    )

    assert response.status_code == 503
    assert "Retry" in response.json()["error"]


def test_missing_file_field_returns_error(client: TestClient, headers: dict[str, str]) -> None:
    response = client.post("/lead-lists/import", data={"name": "No file"}, headers=headers)

    assert response.status_code == 422
    assert "file" in response.json()["error"]


def test_unknown_lead_list_returns_404(client: TestClient, headers: dict[str, str]) -> None:
    lead_list_id = uuid.uuid4()

    response = client.get(f"/lead-lists/{lead_list_id}", headers=headers)

    assert response.status_code == 404
    assert str(lead_list_id) in response.json()["error"]


def test_unknown_route_uses_error_body(client: TestClient) -> None:
    response = client.get("/lead-lists/not-a-uuid/entries")

    assert response.status_code == 404
    assert "error" in response.json()
