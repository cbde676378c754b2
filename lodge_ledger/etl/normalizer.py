"""
Row normalizer and billing calculator.

Turns one raw spreadsheet row (header -> cell text) into a fully calculated
PaymentRecord plus a list of human readable warnings.

Only three defects reject a row (RowValidationError):
  - room number missing / not a positive integer
  - tenant name missing
  - year missing / outside 2000-2100

Everything else falls back to a documented default and is reported as a
warning, so a messy historical sheet never blocks the import.

Pure: no I/O, no clock. Same row in, same record and warnings out.
"""
from __future__ import annotations

import math
from datetime import date, datetime
from typing import Mapping, NamedTuple, Optional

from dateutil import parser as date_parser

from lodge_ledger.etl.errors import RowValidationError
from lodge_ledger.models.payment import (
    BalanceType,
    CSV_IMPORT_SOURCE,
    PaymentRecord,
    PaymentStatus,
)

YEAR_MIN = 2000
YEAR_MAX = 2100

# Rooms below this number are on the ground floor
FIRST_FLOOR_LIMIT = 200

DEFAULT_PAYMENT_MODE = "cash"

# ── column mapping ───────────────────────────────────────────────────────────

# Canonical field -> header spellings seen in the lodge's sheets over the years.
# Matching ignores case and repeated whitespace.
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "room_number": ("Room No.", "Room No", "Room", "Room Number", "roomNumber"),
    "tenant_name": ("Tenant Name", "Tenant", "Name", "tenantName", "tenantNameSnapshot"),
    "year": ("Year",),
    "month": ("Month",),
    "payment_date": ("Date", "Payment Date", "Paid Date", "paymentDate"),
    "rent": ("Rent", "Rent Amount", "Monthly Rent", "rentAmount"),
    "old_reading": (
        "Reading (Prev.)",
        "Old Reading",
        "Previous Reading",
        "Prev Reading",
        "oldReading",
    ),
    "current_reading": (
        "Reading (Curr.)",
        "Current Reading",
        "Curr Reading",
        "New Reading",
        "currentReading",
    ),
    "rate_per_unit": ("Price/Unit", "Rate Per Unit", "Rate", "Unit Rate", "ratePerUnit"),
    "paid_amount": ("Paid", "Paid Amount", "Amount Paid", "paidAmount"),
    "debit_credit": ("Debit/Credit", "Dr/Cr", "debitCredit"),
    "remark": ("Remark", "Remarks", "Note", "Notes"),
    "payment_mode": ("Payment Mode", "Mode", "Online/Cash", "paymentMode"),
}

REQUIRED_FIELDS: tuple[str, ...] = (
    "room_number",
    "tenant_name",
    "year",
    "month",
    "rent",
    "old_reading",
    "current_reading",
    "rate_per_unit",
    "paid_amount",
)


def _header_key(header: str) -> str:
    return " ".join(header.strip().lower().split())


_HEADER_MAP: dict[str, str] = {
    _header_key(alias): field
    for field, aliases in COLUMN_ALIASES.items()
    for alias in aliases
}


def canonical_field(header: Optional[str]) -> Optional[str]:
    """Canonical field name for a spreadsheet header, or None if unmapped."""
    if not isinstance(header, str):
        return None
    return _HEADER_MAP.get(_header_key(header))


def map_columns(raw_row: Mapping[str, Optional[str]]) -> dict[str, str]:
    """Re-key a raw row by canonical field. Unmapped headers are dropped."""
    mapped: dict[str, str] = {}
    for header, value in raw_row.items():
        field = canonical_field(header)
        if field is None or not isinstance(value, str):
            continue
        # first non-empty value wins when two headers share a field
        if mapped.get(field, "").strip():
            continue
        mapped[field] = value
    return mapped


# ── field parsers ────────────────────────────────────────────────────────────


class Parsed(NamedTuple):
    """A parsed number plus the reason a fallback was used (None if parsed cleanly)."""

    value: float
    reason: Optional[str] = None


def parse_amount(raw: Optional[str], default: float = 0.0) -> Parsed:
    """Parse a non-negative amount like '5,000' or '₹ 450.50'."""
    text = (raw or "").replace(",", "").replace("₹", "").strip()
    if not text:
        return Parsed(default, "missing")
    try:
        value = float(text)
    except ValueError:
        return Parsed(default, f"invalid value {raw!r}")
    if not math.isfinite(value):
        return Parsed(default, f"invalid value {raw!r}")
    if value < 0:
        return Parsed(default, f"negative value {raw!r}")
    return Parsed(value)


def parse_int(raw: Optional[str]) -> Optional[int]:
    """Parse a whole number, accepting spreadsheet renderings like '105.0'."""
    text = (raw or "").replace(",", "").strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not value.is_integer():
        return None
    return int(value)


_DATE_FORMATS = ("%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y", "%Y%m%d")


def parse_date(raw: Optional[str]) -> Optional[date]:
    """Parse the payment date; day-first for ambiguous formats. None if unparseable."""
    text = (raw or "").strip()
    if not text:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return date_parser.parse(text, dayfirst=True).date()
    except (ValueError, OverflowError):
        return None


def _optional_text(raw: Optional[str]) -> Optional[str]:
    text = (raw or "").strip()
    return text or None


def _zero_warning(label: str, parsed: Parsed) -> Optional[str]:
    if parsed.value != 0:
        return None
    if parsed.reason:
        return f"{label} is 0 ({parsed.reason})"
    return f"{label} is 0"


# ── classification ───────────────────────────────────────────────────────────


def floor_for_room(room_number: int) -> int:
    return 1 if room_number < FIRST_FLOOR_LIMIT else 2


def balance_type_for(balance: float) -> BalanceType:
    if balance > 0:
        return BalanceType.due
    if balance < 0:
        return BalanceType.advance
    return BalanceType.settled


def status_for(paid_amount: float, balance: float) -> PaymentStatus:
    """
    Payment status; rules are evaluated in order.

    balance is rounded to the paisa, so balance <= 0 means paid >= total.
    """
    if paid_amount == 0:
        return PaymentStatus.unpaid
    if balance <= 0:
        return PaymentStatus.advance if balance < 0 else PaymentStatus.paid
    return PaymentStatus.partial


# ── main entry point ─────────────────────────────────────────────────────────


class NormalizedRow(NamedTuple):
    record: PaymentRecord
    warnings: list[str]


def normalize_and_calculate(raw_row: Mapping[str, Optional[str]]) -> NormalizedRow:
    """
    Map, parse and calculate one spreadsheet row.

    Fields are derived in a fixed order because later values depend on
    earlier ones (units -> electricity -> total -> balance -> status).

    Raises RowValidationError for an unusable room number, tenant name or year.
    """
    row = map_columns(raw_row)
    warnings: list[str] = []

    room_raw = row.get("room_number", "")
    room_number = parse_int(room_raw)
    if room_number is None or room_number <= 0:
        raise RowValidationError(f"Invalid room number {room_raw.strip()!r}")
    floor = floor_for_room(room_number)

    tenant_name = row.get("tenant_name", "").strip()
    if not tenant_name:
        raise RowValidationError("Tenant name is missing")

    year_raw = row.get("year", "")
    year = parse_int(year_raw)
    if year is None or not YEAR_MIN <= year <= YEAR_MAX:
        raise RowValidationError(
            f"Invalid year {year_raw.strip()!r} (expected {YEAR_MIN}-{YEAR_MAX})"
        )

    # Out-of-range months are kept as-is for manual correction later
    month_raw = row.get("month", "")
    month = parse_int(month_raw)
    if month is None:
        warnings.append(f"Invalid month {month_raw.strip()!r}, stored as 0")
        month = 0
    elif not 1 <= month <= 12:
        warnings.append(f"Month {month} is outside 1-12")

    date_raw = _optional_text(row.get("payment_date"))
    payment_date = parse_date(date_raw)
    if payment_date is None:
        if date_raw:
            warnings.append(f"Could not parse date {date_raw!r}")
        else:
            warnings.append("Date is missing")

    rent = parse_amount(row.get("rent"))
    old_reading = parse_amount(row.get("old_reading"))
    current_reading = parse_amount(row.get("current_reading"))
    rate_per_unit = parse_amount(row.get("rate_per_unit"))
    for label, parsed in (
        ("Rent", rent),
        ("Old reading", old_reading),
        ("Current reading", current_reading),
        ("Rate per unit", rate_per_unit),
    ):
        msg = _zero_warning(label, parsed)
        if msg:
            warnings.append(msg)

    units = current_reading.value - old_reading.value
    if units < 0:
        warnings.append(
            f"Negative units ({units:g}): current reading {current_reading.value:g} "
            f"is below old reading {old_reading.value:g}, using 0"
        )
        units = 0.0

    electricity = round(units * rate_per_unit.value, 2)
    total = round(rent.value + electricity, 2)

    # A missing paid amount is a legitimate unpaid month, no warning
    paid = parse_amount(row.get("paid_amount"))
    if paid.reason and paid.reason != "missing":
        warnings.append(f"Paid amount is 0 ({paid.reason})")
    paid_amount = paid.value

    # + 0.0 turns -0.0 into 0.0
    balance = round(total - paid_amount, 2) + 0.0

    record = PaymentRecord(
        room_number=room_number,
        floor=floor,
        tenant_name=tenant_name,
        year=year,
        month=month,
        payment_date=payment_date,
        rent=rent.value,
        old_reading=old_reading.value,
        current_reading=current_reading.value,
        units=units,
        rate_per_unit=rate_per_unit.value,
        electricity=electricity,
        total=total,
        paid_amount=paid_amount,
        balance=balance,
        balance_type=balance_type_for(balance),
        status=status_for(paid_amount, balance),
        debit_credit=_optional_text(row.get("debit_credit")),
        remark=_optional_text(row.get("remark")),
        payment_mode=(row.get("payment_mode") or "").strip().lower() or DEFAULT_PAYMENT_MODE,
        source=CSV_IMPORT_SOURCE,
        tenant_validated=False,
    )
    return NormalizedRow(record, warnings)
