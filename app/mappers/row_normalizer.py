"""
app/mappers/row_normalizer.py

Turns raw CSV rows into LeadRecord objects using a column mapping.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from typing import Any

from app.domain.lead_import import ColumnMapping, LeadRecord, RawTable, SemanticType
from app.validators.content_verifier import is_valid_linkedin_url

# Types stored on dedicated LeadRecord attributes; everything else mapped
# lands in custom_fields under the type value.
RECORD_ATTRIBUTES: dict[SemanticType, str] = {
    SemanticType.PROFILE_URL: "profile_url",
    SemanticType.FIRST_NAME: "first_name",
    SemanticType.LAST_NAME: "last_name",
    SemanticType.COMPANY: "company",
    SemanticType.TITLE: "title",
}


def coerce_cell(value: Any) -> str:
    """
    Convert a raw cell to a trimmed string; None becomes "".
    """

    if value is None:
        return ""
    return str(value).strip()


class RowNormalizer:
    """
    Maps raw rows into normalized lead records.
    """

    def normalize(
        self,
        table: RawTable,
        mapping: Sequence[ColumnMapping],
        reject_rows: Collection[int] = frozenset(),
    ) -> list[LeadRecord]:
        """
        Normalize every row not in `reject_rows` (0-based indexes).

        Rows without a profile URL are dropped without raising.
        """

        active = [
            (position, column.semantic_type)
            for position, column in enumerate(mapping)
            if column.semantic_type is not SemanticType.DO_NOT_IMPORT
        ]
        records: list[LeadRecord] = []

        for row_index, row in enumerate(table.rows):
            if row_index in reject_rows:
                continue
            record = self.map_row(
                values=row.values_by_position,
                active_columns=active,
            )
            if record is not None:
                records.append(record)

        return records

    @staticmethod
    def map_row(
        *,
        values: Sequence[Any],
        active_columns: Sequence[tuple[int, SemanticType]],
    ) -> LeadRecord | None:
        """
        Map one positional row; returns None when the profile URL is empty.

        With several profile URL columns the first valid LinkedIn URL wins,
        falling back to the first non-empty cell.
        """

        attributes: dict[str, str] = {}
        custom_fields: dict[str, str] = {}
        profile_urls: list[str] = []

        for position, semantic_type in active_columns:
            value = coerce_cell(values[position] if position < len(values) else None)
            attribute = RECORD_ATTRIBUTES.get(semantic_type)
            if attribute is None:
                custom_fields[semantic_type.value] = value
            elif semantic_type is SemanticType.PROFILE_URL:
                if value:
                    profile_urls.append(value)
            elif value and not attributes.get(attribute):
                attributes[attribute] = value

        profile_url = next(
            (url for url in profile_urls if is_valid_linkedin_url(url)),
            profile_urls[0] if profile_urls else "",
        )
        if not profile_url:
            return None

        return LeadRecord(
            profile_url=profile_url,
            first_name=attributes.get("first_name") or None,
            last_name=attributes.get("last_name") or None,
            company=attributes.get("company") or None,
            title=attributes.get("title") or None,
            custom_fields=custom_fields,
        )
