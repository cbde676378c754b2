from lodge_ledger.models.payment import (
    BalanceType,
    Payment,
    PaymentRecord,
    PaymentStatus,
    payment_key,
)
from lodge_ledger.models.import_log import ImportLog

__all__ = [
    "BalanceType",
    "Payment",
    "PaymentRecord",
    "PaymentStatus",
    "payment_key",
    "ImportLog",
]
