"""Pydantic response schemas for API endpoints."""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel

from lodge_ledger.models.payment import BalanceType, PaymentStatus


class HealthResponse(BaseModel):
    status: str
    db: str
    version: str = "1.0.0"


class PaymentFields(BaseModel):
    room_number: int
    floor: int
    tenant_name: str
    year: int
    month: int
    payment_date: Optional[date]
    rent: float
    old_reading: float
    current_reading: float
    units: float
    rate_per_unit: float
    electricity: float
    total: float
    paid_amount: float
    balance: float
    balance_type: BalanceType
    status: PaymentStatus
    debit_credit: Optional[str]
    remark: Optional[str]
    payment_mode: str
    source: str
    tenant_validated: bool

    class Config:
        from_attributes = True


class PaymentRead(PaymentFields):
    id: str
    created_at: datetime
    updated_at: datetime
    imported_at: Optional[datetime]


class PaymentListResponse(BaseModel):
    total: int
    page: int
    page_size: int
    items: list[PaymentRead]


class PreviewRowRead(BaseModel):
    row_number: int
    record: PaymentFields
    warnings: list[str]


class PreviewResponse(BaseModel):
    file_name: str
    total_rows: int
    valid_rows: int
    rows: list[PreviewRowRead]
    warnings: list[str]
    errors: list[str]


class ImportLogRead(BaseModel):
    id: int
    file_name: str
    status: str
    total_rows: int
    success_count: int
    updated_count: int
    error_count: int
    warning_count: int
    created_at: datetime

    class Config:
        from_attributes = True


class ImportLogDetail(ImportLogRead):
    warnings: list[str] = []
    errors: list[str] = []
