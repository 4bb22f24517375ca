"""Reconciliation sweep for stalled manual payments.

Pending payments whose age reaches the grace period are expired in one
conditional bulk update so they no longer block plan access. Payments
still inside the window are left for manual verification.
"""

from .models import (
    PendingPayment,
    PendingListingEntry,
    SweepReport,
)
from .errors import (
    SweepError,
    InvalidConfiguration,
    StoreUnavailable,
)
from .classifier import classify, is_stale, payment_age
from .store import (
    PaymentStoreBase,
    SQLAlchemyPaymentStore,
    InMemoryPaymentStore,
    StoredPayment,
)
from .service import (
    ReconciliationSweep,
    DEFAULT_GRACE_PERIOD_MINUTES,
    get_grace_period,
    grace_period_from_minutes,
    compute_cutoff,
    validate_grace_period,
)
from .report import ReportGenerator

__all__ = [
    # Models
    "PendingPayment",
    "PendingListingEntry",
    "SweepReport",
    # Errors
    "SweepError",
    "InvalidConfiguration",
    "StoreUnavailable",
    # Classification
    "classify",
    "is_stale",
    "payment_age",
    # Stores
    "PaymentStoreBase",
    "SQLAlchemyPaymentStore",
    "InMemoryPaymentStore",
    "StoredPayment",
    # Core Components
    "ReconciliationSweep",
    "DEFAULT_GRACE_PERIOD_MINUTES",
    "get_grace_period",
    "grace_period_from_minutes",
    "compute_cutoff",
    "validate_grace_period",
    "ReportGenerator",
]
