"""
ETL Importer: orchestrates decode → normalize → upsert into the payments ledger.

Idempotency strategy:
  - Natural key is (room_number, year, month); tenant identity is NOT part of it,
    so two tenants billed for the same room and month overwrite each other.
  - Existing entries are UPDATEd in place (created_at kept), new ones are
    created with id "{room}_{year}_{month}".
  - Each record is a separate read-then-write with its own commit. There is
    no transaction spanning the check and the write.
  - Rows sharing a natural key collapse to one entry, last row wins.

Every run that gets past the pre-checks writes exactly one ImportLog.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlmodel import Session, select

from lodge_ledger.core.config import settings
from lodge_ledger.core import database
from lodge_ledger.etl.csv_reader import ParsedImport, PreviewRow, read_csv
from lodge_ledger.etl.errors import EmptyImportError, StoreUnavailableError
from lodge_ledger.models.import_log import ImportLog
from lodge_ledger.models.payment import Payment, PaymentRecord, payment_key, utc_now


# ── helpers ──────────────────────────────────────────────────────────────────


@dataclass
class ReconcileTally:
    """Per-run accumulator, frozen into an ImportLog at the end."""

    created: int = 0
    updated: int = 0
    errors: list[str] = field(default_factory=list)

    def to_log(self, parsed: ParsedImport, cap: int) -> ImportLog:
        errors = parsed.errors + self.errors
        warnings = parsed.warnings
        return ImportLog(
            file_name=parsed.file_name,
            status="success" if not errors else "partial",
            total_rows=parsed.total_rows,
            success_count=self.created,
            updated_count=self.updated,
            error_count=len(errors),
            warning_count=len(warnings),
            warnings=json.dumps(warnings[:cap]) if warnings else None,
            errors=json.dumps(errors[:cap]) if errors else None,
            created_at=utc_now(),
        )


def find_existing(session: Session, record: PaymentRecord) -> Optional[Payment]:
    """Ledger entry sharing the record's natural key, if any."""
    room_number, year, month = record.natural_key
    stmt = select(Payment).where(
        Payment.room_number == room_number,
        Payment.year == year,
        Payment.month == month,
    )
    return session.exec(stmt).first()


def _upsert_payment(session: Session, record: PaymentRecord) -> tuple[Payment, bool]:
    """
    Returns (payment, was_inserted).
    was_inserted=False means an existing entry was overwritten.
    """
    data = record.model_dump()
    now = utc_now()
    existing = find_existing(session, record)

    if existing:
        diffs = []
        for k, v in data.items():
            old = getattr(existing, k, None)
            if old != v:
                diffs.append(f"{k}: {old!r} → {v!r}")
        if diffs:
            logger.debug(f"Updating payment {existing.id}: {', '.join(diffs[:5])}")

        for k, v in data.items():
            setattr(existing, k, v)
        existing.updated_at = now
        session.add(existing)
        return existing, False

    payment = Payment(
        **data,
        id=payment_key(*record.natural_key),
        created_at=now,
        updated_at=now,
        imported_at=now,
    )
    session.add(payment)
    return payment, True


def _reconcile_one(engine: Engine, row: PreviewRow, retries: int) -> bool:
    """Write one record in its own session. Returns True if it was created."""
    attempt = 0
    while True:
        with Session(engine) as session:
            try:
                _, inserted = _upsert_payment(session, row.record)
                session.commit()
                return inserted
            except OperationalError as exc:
                session.rollback()
                if attempt >= retries:
                    raise
                attempt += 1
                logger.warning(
                    f"Row {row.row_number}: transient DB error, retry {attempt}/{retries}: {exc}"
                )
            except Exception:
                session.rollback()
                raise


def _ensure_store_reachable(engine: Engine) -> None:
    try:
        with Session(engine) as session:
            session.exec(select(Payment.id).limit(1)).first()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError(f"Payments store unavailable: {exc}") from exc


# ── main importer ─────────────────────────────────────────────────────────────


def reconcile(parsed: ParsedImport, *, engine: Engine | None = None) -> ImportLog:
    """
    Upsert every previewed record into the ledger and persist one ImportLog.

    Raises EmptyImportError / StoreUnavailableError before any write.
    A failure on one record is logged against its row and the run continues.
    """
    engine = engine or database.engine

    if parsed.total_rows == 0:
        raise EmptyImportError("CSV file is empty")
    _ensure_store_reachable(engine)

    logger.info(f"Reconciling {len(parsed.rows)} record(s) from {parsed.file_name}")
    tally = ReconcileTally()

    for row in parsed.rows:
        try:
            if _reconcile_one(engine, row, settings.IMPORT_WRITE_RETRIES):
                tally.created += 1
            else:
                tally.updated += 1
        except Exception as exc:
            tally.errors.append(f"Row {row.row_number}: {exc}")
            logger.error(f"Payment upsert failed for row {row.row_number}: {exc}")

    log = tally.to_log(parsed, settings.IMPORT_LOG_CAP)
    with Session(engine) as session:
        session.add(log)
        session.commit()
        session.refresh(log)

    logger.info(
        f"{parsed.file_name}: {log.success_count} created, "
        f"{log.updated_count} updated, {log.error_count} error(s), "
        f"{log.warning_count} warning(s)"
    )
    return log


def import_file(file_path: str | Path, *, engine: Engine | None = None) -> ImportLog:
    """
    Full pipeline for a CSV file on disk.

    1. Read raw bytes (a backup copy goes to RAW_BACKUP_DIR).
    2. Decode, check headers, normalize every row.
    3. Reconcile against the ledger and return the ImportLog.
    """
    file_path = Path(file_path)
    raw = file_path.read_bytes()
    logger.info(f"Importing {file_path.name} ({len(raw):,} bytes)")
    parsed = read_csv(raw, file_name=file_path.name, backup_dir=settings.RAW_BACKUP_DIR)
    return reconcile(parsed, engine=engine)
