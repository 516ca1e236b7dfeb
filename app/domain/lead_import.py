"""
app/domain/lead_import.py

Domain models used by the lead CSV import flow.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum


class SemanticType(str, Enum):
    """
    Closed vocabulary of meanings a CSV column can carry.
    """

    PROFILE_URL = "profile_url"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    COMPANY = "company"
    COMPANY_URL = "company_url"
    TITLE = "title"
    HEADLINE = "headline"
    LOCATION = "location"
    EMAIL = "email"
    CUSTOM_VARIABLE = "custom_variable"
    DO_NOT_IMPORT = "do_not_import"

    @property
    def is_reserved(self) -> bool:
        """Reserved types may be assigned to any number of columns."""
        return self in RESERVED_TYPES

    @classmethod
    def parse(cls, label: str) -> SemanticType:
        """
        Resolve a canonical value or one of the legacy front-end labels.

        Raises ValueError for labels outside the vocabulary.
        """

        key = label.strip().lower()
        try:
            return cls(key)
        except ValueError:
            pass
        alias = _LEGACY_LABELS.get(key)
        if alias is None:
            raise ValueError(f"Unknown column type '{label}'.")
        return alias


RESERVED_TYPES: frozenset[SemanticType] = frozenset(
    {SemanticType.CUSTOM_VARIABLE, SemanticType.DO_NOT_IMPORT}
)

# Labels sent by older dashboard builds (hyphenated, some renamed).
_LEGACY_LABELS: dict[str, SemanticType] = {
    "linkedin-url": SemanticType.PROFILE_URL,
    "linkedin_url": SemanticType.PROFILE_URL,
    "url": SemanticType.PROFILE_URL,
    "first-name": SemanticType.FIRST_NAME,
    "last-name": SemanticType.LAST_NAME,
    "company-url": SemanticType.COMPANY_URL,
    "job-title": SemanticType.TITLE,
    "job_title": SemanticType.TITLE,
    "head-line": SemanticType.HEADLINE,
    "tags": SemanticType.CUSTOM_VARIABLE,
    "custom-variable": SemanticType.CUSTOM_VARIABLE,
    "do-not-import": SemanticType.DO_NOT_IMPORT,
}


class ImportStage(str, Enum):
    """Pipeline state: uploaded → parsed → mapped → verified → filtered → persisted | failed."""

    UPLOADED = "uploaded"
    PARSED = "parsed"
    MAPPED = "mapped"
    VERIFIED = "verified"
    FILTERED = "filtered"
    PERSISTED = "persisted"
    FAILED = "failed"


class RawRow(Mapping[str, str]):
    """
    One parsed CSV data row, addressed by header text or by column position.

    Values are stored positionally so duplicate header texts are preserved.
    Looking up a header that is not part of the table raises KeyError.
    """

    __slots__ = ("_headers", "_values")

    def __init__(self, headers: Sequence[str], values: Sequence[str]) -> None:
        self._headers = tuple(headers)
        padded = list(values[: len(self._headers)])
        padded.extend("" for _ in range(len(self._headers) - len(padded)))
        self._values = tuple(padded)

    def __getitem__(self, header: str) -> str:
        try:
            index = self._headers.index(header)
        except ValueError:
            raise KeyError(header) from None
        return self._values[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"RawRow({dict(zip(self._headers, self._values))!r})"

    def value_at(self, index: int) -> str:
        return self._values[index]

    @property
    def values_by_position(self) -> tuple[str, ...]:
        return self._values

    def is_blank(self) -> bool:
        return all(not value.strip() for value in self._values)

    def to_dict(self) -> dict[str, str]:
        """First occurrence wins for duplicate header texts."""
        result: dict[str, str] = {}
        for header, value in zip(self._headers, self._values):
            result.setdefault(header, value)
        return result


@dataclass(frozen=True)
class RawTable:
    """
    Parsed CSV file: ordered headers plus ordered data rows.
    """

    headers: tuple[str, ...]
    rows: tuple[RawRow, ...]

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class ColumnMapping:
    """
    Semantic type assigned to one CSV column.
    """

    column_name: str
    semantic_type: SemanticType
    sample_values: tuple[str, ...] = ()

    def with_type(self, semantic_type: SemanticType) -> ColumnMapping:
        return ColumnMapping(
            column_name=self.column_name,
            semantic_type=semantic_type,
            sample_values=self.sample_values,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "columnName": self.column_name,
            "mappedType": self.semantic_type.value,
            "samples": list(self.sample_values),
        }


@dataclass(frozen=True)
class InvalidUrl:
    """One rejected URL value; row_number is 1-based for display."""

    row_number: int
    value: str
    column: str


@dataclass(frozen=True)
class ColumnCompleteness:
    missing_count: int
    sample_missing_rows: tuple[int, ...] = ()


@dataclass(frozen=True)
class CustomVariableStats:
    present: int = 0
    empty: int = 0


@dataclass(frozen=True)
class VerificationReport:
    """
    Result of one verification pass over a mapped table.

    rejected_row_indexes holds 0-based positions of rows that carry at least
    one invalid URL and no valid one.
    """

    valid_url_count: int
    invalid_url_count: int
    invalid_url_rows: tuple[InvalidUrl, ...]
    column_completeness: dict[str, ColumnCompleteness]
    url_columns: tuple[str, ...]
    rejected_row_indexes: frozenset[int] = frozenset()
    custom_variables: CustomVariableStats = field(default_factory=CustomVariableStats)

    @property
    def no_valid_urls(self) -> bool:
        return bool(self.url_columns) and self.valid_url_count == 0

    def to_dict(self) -> dict[str, object]:
        return {
            "validUrlCount": self.valid_url_count,
            "invalidUrlCount": self.invalid_url_count,
            "invalidUrlRows": [
                {"row": item.row_number, "url": item.value, "column": item.column}
                for item in self.invalid_url_rows
            ],
            "columnCompleteness": {
                column: {
                    "missing": completeness.missing_count,
                    "missingRows": list(completeness.sample_missing_rows),
                }
                for column, completeness in self.column_completeness.items()
            },
            "customVariables": {
                "present": self.custom_variables.present,
                "empty": self.custom_variables.empty,
            },
        }


@dataclass(frozen=True)
class LeadRecord:
    """
    One normalized prospect ready for campaign use.
    """

    profile_url: str
    first_name: str | None = None
    last_name: str | None = None
    company: str | None = None
    title: str | None = None
    custom_fields: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "profileUrl": self.profile_url,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "company": self.company,
            "title": self.title,
            "customFields": dict(self.custom_fields),
        }


@dataclass(frozen=True)
class MappingSuggestion:
    """
    Mapping proposal returned before an import is committed.
    """

    mappings: tuple[ColumnMapping, ...]
    preview_data: tuple[dict[str, str], ...]
    total_rows: int
    headers: tuple[str, ...]


@dataclass(frozen=True)
class StandardHeaderMatch:
    standard_header: str
    matched_header: str | None


@dataclass(frozen=True)
class ImportResult:
    """
    End-of-run import summary.

    total_rows counts the rows left after verification filtering;
    original_row_count is the number of data rows in the file.

    durably_saved is False when persistence failed and records only exist in
    memory; persistence_error then carries the user-facing warning.
    """

    lead_list_id: uuid.UUID | None
    accepted_count: int
    rejected_count: int
    total_rows: int
    original_row_count: int
    records: tuple[LeadRecord, ...]
    mappings: tuple[ColumnMapping, ...]
    report: VerificationReport
    stage: ImportStage
    durably_saved: bool = True
    persistence_error: str | None = None
