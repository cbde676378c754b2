"""
CSV reader: decodes an uploaded sheet and runs every row through the normalizer.

The result (ParsedImport) is what the preview screen renders before the user
confirms the import, and what the importer reconciles afterwards.
"""
from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from lodge_ledger.etl.errors import CsvFormatError, MissingColumnsError, RowValidationError
from lodge_ledger.etl.normalizer import (
    REQUIRED_FIELDS,
    canonical_field,
    normalize_and_calculate,
)
from lodge_ledger.etl.sanitizer import decode_csv
from lodge_ledger.models.payment import PaymentRecord


@dataclass(frozen=True)
class PreviewRow:
    row_number: int  # 1-based, blank lines not counted
    record: PaymentRecord
    warnings: list[str] = field(default_factory=list)


@dataclass
class ParsedImport:
    file_name: str
    total_rows: int = 0
    rows: list[PreviewRow] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def records(self) -> list[PaymentRecord]:
        return [r.record for r in self.rows]


def check_required_columns(headers: Iterable[Optional[str]]) -> None:
    """Reject the file if any required field has no matching header at all."""
    present = {canonical_field(h) for h in headers}
    missing = [f for f in REQUIRED_FIELDS if f not in present]
    if missing:
        raise MissingColumnsError(missing)


def _is_blank(row: dict) -> bool:
    return all(
        not (v or "").strip() for k, v in row.items() if k is not None and isinstance(v, str)
    )


def read_csv(
    raw: bytes | str,
    *,
    file_name: str = "upload.csv",
    backup_dir: Path | None = None,
) -> ParsedImport:
    """
    Parse CSV content into calculated rows.

    Raises CsvFormatError / MissingColumnsError before any row is processed.
    Row-level hard errors are collected, not raised.
    """
    parsed = ParsedImport(file_name=file_name)

    if isinstance(raw, bytes):
        text, decode_warnings = decode_csv(
            raw, source_path=file_name, backup_dir=backup_dir
        )
        parsed.warnings.extend(decode_warnings)
    else:
        text = raw

    try:
        reader = csv.DictReader(io.StringIO(text, newline=""))
        headers = reader.fieldnames
    except csv.Error as exc:
        raise CsvFormatError(f"CSV parsing error: {exc}") from exc
    if not headers:
        raise CsvFormatError("CSV file has no header row")

    check_required_columns(headers)

    try:
        data_rows = [row for row in reader if not _is_blank(row)]
    except csv.Error as exc:
        raise CsvFormatError(f"CSV parsing error: {exc}") from exc

    for row_number, raw_row in enumerate(data_rows, start=1):
        parsed.total_rows += 1
        try:
            record, row_warnings = normalize_and_calculate(raw_row)
        except RowValidationError as exc:
            parsed.errors.append(f"Row {row_number}: {exc}")
            logger.warning(f"{file_name} row {row_number} skipped: {exc}")
            continue
        prefixed = [f"Row {row_number}: {w}" for w in row_warnings]
        parsed.warnings.extend(prefixed)
        parsed.rows.append(PreviewRow(row_number, record, prefixed))

    logger.info(
        f"{file_name}: {parsed.total_rows} row(s) read, {len(parsed.rows)} valid, "
        f"{len(parsed.errors)} rejected, {len(parsed.warnings)} warning(s)"
    )
    return parsed
