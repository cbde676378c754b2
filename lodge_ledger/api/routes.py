"""
REST API routes for the lodge payments backend.

Endpoints:
  GET  /api/health
  POST /api/import/preview
  POST /api/import
  GET  /api/payments
  GET  /api/payments/{payment_id}
  GET  /api/import-logs
  GET  /api/import-logs/{log_id}
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from loguru import logger
from sqlmodel import Session, col, func, select

from lodge_ledger.core.config import settings
from lodge_ledger.core.database import get_session
from lodge_ledger.etl.csv_reader import ParsedImport, read_csv
from lodge_ledger.etl.errors import ImportPipelineError, StoreUnavailableError
from lodge_ledger.etl.importer import import_file, reconcile
from lodge_ledger.models.import_log import ImportLog
from lodge_ledger.models.payment import Payment, PaymentStatus
from lodge_ledger.schemas.responses import (
    HealthResponse,
    ImportLogDetail,
    ImportLogRead,
    PaymentFields,
    PaymentListResponse,
    PaymentRead,
    PreviewResponse,
    PreviewRowRead,
)

router = APIRouter(prefix="/api")


# ── Helpers ───────────────────────────────────────────────────────────────────


def _pipeline_http_error(exc: ImportPipelineError) -> HTTPException:
    logger.warning(f"Import rejected: {exc}")
    if isinstance(exc, StoreUnavailableError):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


async def _read_upload(file: UploadFile) -> ParsedImport:
    content = await file.read()
    try:
        return read_csv(
            content,
            file_name=file.filename or "upload.csv",
            backup_dir=settings.RAW_BACKUP_DIR,
        )
    except ImportPipelineError as exc:
        raise _pipeline_http_error(exc) from exc


def _log_detail(log: ImportLog) -> ImportLogDetail:
    return ImportLogDetail(
        **ImportLogRead.model_validate(log).model_dump(),
        warnings=json.loads(log.warnings) if log.warnings else [],
        errors=json.loads(log.errors) if log.errors else [],
    )


# ── Health ────────────────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
def health(session: Session = Depends(get_session)):
    try:
        session.exec(select(Payment).limit(1))
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {e}"
    return HealthResponse(status="ok", db=db_status)


# ── Import ────────────────────────────────────────────────────────────────────


@router.post("/import/preview", response_model=PreviewResponse)
async def preview_import(file: UploadFile = File(...)):
    """Calculate every row of an uploaded CSV without writing anything."""
    parsed = await _read_upload(file)
    return PreviewResponse(
        file_name=parsed.file_name,
        total_rows=parsed.total_rows,
        valid_rows=len(parsed.rows),
        rows=[
            PreviewRowRead(
                row_number=r.row_number,
                record=PaymentFields.model_validate(r.record),
                warnings=r.warnings,
            )
            for r in parsed.rows
        ],
        warnings=parsed.warnings,
        errors=parsed.errors,
    )


@router.post("/import", response_model=ImportLogDetail)
async def confirm_import(
    file: Optional[UploadFile] = File(default=None),
    path: Optional[str] = Query(default=None, description="Absolute path to CSV file on server"),
):
    """
    Import a CSV into the payments ledger (the caller has already confirmed the preview).
    Either upload a file via multipart, or provide a server-side path.
    """
    try:
        if file is not None:
            parsed = await _read_upload(file)
            log = reconcile(parsed)
        elif path:
            if not Path(path).exists():
                raise HTTPException(status_code=404, detail=f"File not found: {path}")
            log = import_file(path)
        else:
            raise HTTPException(
                status_code=400, detail="Provide either a file upload or a path parameter"
            )
    except ImportPipelineError as exc:
        raise _pipeline_http_error(exc) from exc
    return _log_detail(log)


# ── Payments ──────────────────────────────────────────────────────────────────


@router.get("/payments", response_model=PaymentListResponse)
def list_payments(
    year: Optional[int] = Query(default=None),
    month: Optional[int] = Query(default=None),
    floor: Optional[int] = Query(default=None),
    room_number: Optional[int] = Query(default=None),
    status: Optional[PaymentStatus] = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=500),
    session: Session = Depends(get_session),
):
    stmt = select(Payment)

    if year is not None:
        stmt = stmt.where(Payment.year == year)
    if month is not None:
        stmt = stmt.where(Payment.month == month)
    if floor is not None:
        stmt = stmt.where(Payment.floor == floor)
    if room_number is not None:
        stmt = stmt.where(Payment.room_number == room_number)
    if status is not None:
        stmt = stmt.where(Payment.status == status)

    total_stmt = select(func.count()).select_from(stmt.subquery())
    total = session.exec(total_stmt).one()

    stmt = stmt.order_by(
        col(Payment.year).desc(), col(Payment.month).desc(), col(Payment.room_number)
    )
    stmt = stmt.offset((page - 1) * page_size).limit(page_size)
    items = session.exec(stmt).all()

    return PaymentListResponse(
        total=total,
        page=page,
        page_size=page_size,
        items=[PaymentRead.model_validate(p) for p in items],
    )


@router.get("/payments/{payment_id}", response_model=PaymentRead)
def get_payment(payment_id: str, session: Session = Depends(get_session)):
    payment = session.get(Payment, payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return PaymentRead.model_validate(payment)


# ── Import logs ───────────────────────────────────────────────────────────────


@router.get("/import-logs", response_model=list[ImportLogRead])
def list_import_logs(
    limit: int = Query(default=50, ge=1, le=200),
    session: Session = Depends(get_session),
):
    stmt = (
        select(ImportLog)
        .order_by(col(ImportLog.created_at).desc(), col(ImportLog.id).desc())
        .limit(limit)
    )
    return session.exec(stmt).all()


@router.get("/import-logs/{log_id}", response_model=ImportLogDetail)
def get_import_log(log_id: int, session: Session = Depends(get_session)):
    log = session.get(ImportLog, log_id)
    if not log:
        raise HTTPException(status_code=404, detail="Import log not found")
    return _log_detail(log)
