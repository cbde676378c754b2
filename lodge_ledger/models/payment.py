"""SQLModel models for the monthly payments ledger."""
from enum import Enum
from typing import Optional
from datetime import date, datetime, timezone
from sqlmodel import SQLModel, Field

CSV_IMPORT_SOURCE = "csv_import"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BalanceType(str, Enum):
    due = "due"
    advance = "advance"
    settled = "settled"


class PaymentStatus(str, Enum):
    unpaid = "unpaid"
    partial = "partial"
    paid = "paid"
    advance = "advance"


def payment_key(room_number: int, year: int, month: int) -> str:
    """Ledger document id for a (room, year, month) natural key."""
    return f"{room_number}_{year}_{month}"


class PaymentRecord(SQLModel):
    """
    One fully calculated billing row, independent of the spreadsheet it came from.

    tenant_name is a snapshot and is never checked against the tenant registry.
    """

    room_number: int = Field(index=True)
    floor: int
    tenant_name: str
    year: int = Field(index=True)
    month: int = Field(index=True)
    payment_date: Optional[date] = None

    # Billing
    rent: float = Field(default=0.0)
    old_reading: float = Field(default=0.0)
    current_reading: float = Field(default=0.0)
    units: float = Field(default=0.0)
    rate_per_unit: float = Field(default=0.0)
    electricity: float = Field(default=0.0)
    total: float = Field(default=0.0)
    paid_amount: float = Field(default=0.0)
    balance: float = Field(default=0.0)
    balance_type: BalanceType = Field(default=BalanceType.settled)
    status: PaymentStatus = Field(default=PaymentStatus.unpaid)

    # Free text
    debit_credit: Optional[str] = None
    remark: Optional[str] = None
    payment_mode: str = Field(default="cash")

    # Provenance
    source: str = Field(default=CSV_IMPORT_SOURCE)
    tenant_validated: bool = Field(default=False)

    @property
    def natural_key(self) -> tuple[int, int, int]:
        return (self.room_number, self.year, self.month)


class Payment(PaymentRecord, table=True):
    """A ledger entry. Importer-created entries use payment_key() as id."""

    __tablename__ = "payments"

    id: str = Field(primary_key=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    imported_at: Optional[datetime] = None
