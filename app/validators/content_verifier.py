"""
app/validators/content_verifier.py

Row-level verification of mapped LinkedIn URL columns and advisory
completeness checks for name/email columns.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

from app.domain.lead_import import (
    ColumnCompleteness,
    ColumnMapping,
    CustomVariableStats,
    InvalidUrl,
    RawTable,
    SemanticType,
    VerificationReport,
)
from app.errors import NoMappedUrlColumnError

logger = logging.getLogger(__name__)

_LINKEDIN_HOST = r"^(?:https?://)?(?:www\.)?linkedin\.(?:com|co\.\w{2}|[a-z]{2,3})"
_TRAILER = r"/?(?:[?#].*)?$"

LINKEDIN_PROFILE_PATTERN = re.compile(
    _LINKEDIN_HOST + r"/(?:in|profile)/[\w\-.%+]+" + _TRAILER,
    re.IGNORECASE,
)
LINKEDIN_COMPANY_PATTERN = re.compile(
    _LINKEDIN_HOST + r"/(?:company|school|organization)/[\w\-.%+]+" + _TRAILER,
    re.IGNORECASE,
)
_LINKEDIN_DOMAIN = re.compile(r"linkedin\.(?:com|co)", re.IGNORECASE)
_LINKEDIN_PATH = re.compile(r"/(?:in|company)/", re.IGNORECASE)
_SCHEME = re.compile(r"^https?://", re.IGNORECASE)

COMPLETENESS_TYPES: frozenset[SemanticType] = frozenset(
    {SemanticType.FIRST_NAME, SemanticType.LAST_NAME, SemanticType.EMAIL}
)
MAX_MISSING_ROW_SAMPLES = 3


def normalize_url(value: str) -> str:
    """
    Trim a URL and add an https scheme when none is present.
    """

    normalized = value.strip()
    if not _SCHEME.match(normalized):
        normalized = "https://" + normalized
    return normalized


def is_valid_linkedin_url(value: str) -> bool:
    """
    Return True for LinkedIn profile or company page URLs.
    """

    normalized = normalize_url(value)
    if LINKEDIN_PROFILE_PATTERN.match(normalized) or LINKEDIN_COMPANY_PATTERN.match(normalized):
        return True
    # Tracking-laden exports sometimes miss the strict patterns.
    return bool(_LINKEDIN_DOMAIN.search(normalized) and _LINKEDIN_PATH.search(normalized))


class ContentVerifier:
    """
    Validates mapped URL columns and reports column completeness.
    """

    def __init__(
        self,
        *,
        max_reported_invalid_urls: int = 500,
        log_invalid_urls: bool = True,
    ) -> None:
        self._max_reported_invalid_urls = max(1, max_reported_invalid_urls)
        self._log_invalid_urls = log_invalid_urls

    def verify(
        self,
        table: RawTable,
        mapping: Sequence[ColumnMapping],
    ) -> VerificationReport:
        """
        Verify every row of `table` against `mapping`.

        Raises NoMappedUrlColumnError before scanning when no column is
        mapped as profile_url.
        """

        url_positions = [
            position
            for position, column in enumerate(mapping)
            if column.semantic_type is SemanticType.PROFILE_URL
        ]
        if not url_positions:
            raise NoMappedUrlColumnError()

        valid_count = 0
        invalid_count = 0
        invalid_rows: list[InvalidUrl] = []
        rejected: set[int] = set()

        for row_index, row in enumerate(table.rows):
            row_has_valid = False
            row_has_invalid = False
            for position in url_positions:
                raw_value = self._cell(row, position)
                if not raw_value.strip():
                    continue
                if is_valid_linkedin_url(raw_value):
                    valid_count += 1
                    row_has_valid = True
                    continue

                invalid_count += 1
                row_has_invalid = True
                self._record_invalid(
                    invalid_rows,
                    InvalidUrl(
                        row_number=row_index + 1,
                        value=raw_value,
                        column=mapping[position].column_name,
                    ),
                )
            if row_has_invalid and not row_has_valid:
                rejected.add(row_index)

        report = VerificationReport(
            valid_url_count=valid_count,
            invalid_url_count=invalid_count,
            invalid_url_rows=tuple(invalid_rows),
            column_completeness=self._column_completeness(table, mapping),
            url_columns=tuple(mapping[position].column_name for position in url_positions),
            rejected_row_indexes=frozenset(rejected),
            custom_variables=self._custom_variable_stats(table, mapping),
        )
        logger.info(
            "Lead verification finished rows=%s valid_urls=%s invalid_urls=%s rejected_rows=%s",
            table.row_count,
            report.valid_url_count,
            report.invalid_url_count,
            len(report.rejected_row_indexes),
        )
        return report

    def _column_completeness(
        self,
        table: RawTable,
        mapping: Sequence[ColumnMapping],
    ) -> dict[str, ColumnCompleteness]:
        completeness: dict[str, ColumnCompleteness] = {}
        for position, column in enumerate(mapping):
            if column.semantic_type not in COMPLETENESS_TYPES:
                continue

            missing_count = 0
            missing_rows: list[int] = []
            for row_index, row in enumerate(table.rows):
                if self._cell(row, position).strip():
                    continue
                missing_count += 1
                if len(missing_rows) < MAX_MISSING_ROW_SAMPLES:
                    missing_rows.append(row_index + 1)

            completeness[column.column_name] = ColumnCompleteness(
                missing_count=missing_count,
                sample_missing_rows=tuple(missing_rows),
            )
        return completeness

    def _custom_variable_stats(
        self,
        table: RawTable,
        mapping: Sequence[ColumnMapping],
    ) -> CustomVariableStats:
        positions = [
            position
            for position, column in enumerate(mapping)
            if column.semantic_type is SemanticType.CUSTOM_VARIABLE
        ]
        present = 0
        empty = 0
        for row in table.rows:
            for position in positions:
                if self._cell(row, position).strip():
                    present += 1
                else:
                    empty += 1
        return CustomVariableStats(present=present, empty=empty)

    def _record_invalid(self, invalid_rows: list[InvalidUrl], invalid: InvalidUrl) -> None:
        if len(invalid_rows) >= self._max_reported_invalid_urls:
            return
        if self._log_invalid_urls:
            logger.warning(
                "Invalid LinkedIn URL row=%s column=%s value=%r",
                invalid.row_number,
                invalid.column,
                invalid.value,
            )
        invalid_rows.append(invalid)

    @staticmethod
    def _cell(row: Any, position: int) -> str:
        try:
            value = row.value_at(position)
        except IndexError:
            return ""
        return value or ""
