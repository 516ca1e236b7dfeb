"""
app/services/csv_reader.py

Decodes uploaded CSV bytes into a RawTable.
"""

from __future__ import annotations

import csv
import io

from app.domain.lead_import import RawRow, RawTable
from app.errors import EmptyOrInvalidCsvError


def read_csv_bytes(content: bytes) -> RawTable:
    """
    Parse UTF-8 CSV bytes (optional BOM) with a mandatory header row.

    Cells are trimmed, blank lines are skipped and short rows are padded
    with empty strings. Raises EmptyOrInvalidCsvError when the content
    cannot be decoded or parsed, has no usable header, or has no data rows.
    """

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise EmptyOrInvalidCsvError("CSV must be UTF-8 encoded. Re-export the file as UTF-8 and upload it again.") from exc

    reader = csv.reader(io.StringIO(text, newline=""))
    try:
        header_row = next(reader, None)
        if header_row is None:
            raise EmptyOrInvalidCsvError()

        headers = tuple(cell.strip() for cell in header_row)
        if not any(headers):
            raise EmptyOrInvalidCsvError("CSV header row is missing. Add a header row naming each column.")

        rows: list[RawRow] = []
        for raw_row in reader:
            row = RawRow(headers, [cell.strip() for cell in raw_row])
            if row.is_blank():
                continue
            rows.append(row)
    except csv.Error as exc:
        raise EmptyOrInvalidCsvError(f"Failed to parse CSV file: {exc}") from exc

    if not rows:
        raise EmptyOrInvalidCsvError()

    return RawTable(headers=headers, rows=tuple(rows))
