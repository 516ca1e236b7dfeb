from __future__ import annotations

import unittest
import uuid

from sqlalchemy.exc import OperationalError

from app.domain.lead_import import ColumnMapping, LeadRecord, SemanticType
from app.errors import PersistenceFailureError
from app.services.lead_persistence import SQLAlchemyLeadPersistence, mapping_snapshot, to_entry_creates
from db.models import LeadEntry
from db.repositories.lead_list_repository import prepare_entry_payloads
from db.repositories.types import LeadEntryCreate


class TestEntryPayloads(unittest.TestCase):
    def setUp(self) -> None:
        self.lead_list_id = uuid.uuid4()
        self.org_id = uuid.uuid4()

    def test_drops_blank_and_duplicate_profile_urls(self) -> None:
        entries = [
            LeadEntryCreate(profile_url="https://linkedin.com/in/a", first_name="Ann"),
            LeadEntryCreate(profile_url="  "),
            LeadEntryCreate(profile_url=" https://linkedin.com/in/a ", first_name="Again"),
            LeadEntryCreate(profile_url="https://linkedin.com/in/b", custom_fields={"email": "b@x.io"}),
        ]

        payloads = prepare_entry_payloads(entries, lead_list_id=self.lead_list_id, org_id=self.org_id)

        self.assertEqual(
            [payload["profile_url"] for payload in payloads],
            ["https://linkedin.com/in/a", "https://linkedin.com/in/b"],
        )
        self.assertEqual(payloads[0]["first_name"], "Ann")
        self.assertEqual(payloads[1]["custom_fields"], {"email": "b@x.io"})
        self.assertTrue(all(payload["lead_list_id"] == self.lead_list_id for payload in payloads))
        self.assertTrue(all(payload["org_id"] == self.org_id for payload in payloads))

    def test_payload_covers_every_entry_data_column(self) -> None:
        payloads = prepare_entry_payloads(
            [LeadEntryCreate(profile_url="https://linkedin.com/in/a")],
            lead_list_id=self.lead_list_id,
            org_id=self.org_id,
        )

        data_columns = {column.name for column in LeadEntry.__table__.columns} - {"id", "created_at", "updated_at"}
        self.assertEqual(set(payloads[0]), data_columns)

    def test_to_entry_creates_rechecks_profile_url(self) -> None:
        records = [
            LeadRecord(profile_url="https://linkedin.com/in/a", custom_fields={}),
            LeadRecord(profile_url="   "),
        ]

        entries = to_entry_creates(records)

        self.assertEqual(len(entries), 1)
        self.assertIsNone(entries[0].custom_fields)

    def test_mapping_snapshot(self) -> None:
        snapshot = mapping_snapshot([ColumnMapping("LinkedIn", SemanticType.PROFILE_URL, ("https://linkedin.com/in/a",))])

        self.assertEqual(
            snapshot,
            [{"columnName": "LinkedIn", "mappedType": "profile_url", "samples": ["https://linkedin.com/in/a"]}],
        )


class TestSQLAlchemyLeadPersistence(unittest.TestCase):
    def test_wraps_database_errors(self) -> None:
        def unavailable_session():
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        persistence = SQLAlchemyLeadPersistence(session_factory=unavailable_session)

        with self.assertRaises(PersistenceFailureError) as ctx:
            persistence.persist_lead_list(
                org_id=uuid.uuid4(),
                name="Leads",
                mappings=[ColumnMapping("LinkedIn", SemanticType.PROFILE_URL)],
                records=[LeadRecord(profile_url="https://linkedin.com/in/a")],
            )

        self.assertEqual(ctx.exception.status_code, 503)
        self.assertIsInstance(ctx.exception.__cause__, OperationalError)


if __name__ == "__main__":
    unittest.main()
