"""SQLModel model for the append-only import audit trail."""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field

from lodge_ledger.models.payment import utc_now


class ImportLog(SQLModel, table=True):
    """Outcome of one CSV import run. Written once, never updated."""

    __tablename__ = "import_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    file_name: str
    status: str  # "success" or "partial"
    total_rows: int = Field(default=0)
    success_count: int = Field(default=0)  # newly created ledger entries
    updated_count: int = Field(default=0)
    error_count: int = Field(default=0)
    warning_count: int = Field(default=0)
    warnings: Optional[str] = None  # JSON list, capped
    errors: Optional[str] = None  # JSON list, capped
    created_at: datetime = Field(default_factory=utc_now, index=True)
