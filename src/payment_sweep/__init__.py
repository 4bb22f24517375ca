# payment_sweep package
__version__ = "0.1.0"

from .database import (
    Account,
    AdminSetting,
    Payment,
    PaymentStatus,
    init_db,
    close_db,
    get_db,
)

from .sweep import (
    ReconciliationSweep,
    SweepReport,
    PendingPayment,
    PaymentStoreBase,
    SQLAlchemyPaymentStore,
    InMemoryPaymentStore,
    InvalidConfiguration,
    StoreUnavailable,
    ReportGenerator,
)
