"""Database module for payment persistence."""

from .models import (
    Account,
    AdminSetting,
    Payment,
    Base,
    PaymentStatus,
    utcnow,
)
from .session import (
    get_db,
    get_database_url,
    init_db,
    close_db,
    create_async_engine,
    get_async_session_factory,
    get_db_context,
)
from .repository import (
    PaymentRepository,
    AccountRepository,
    SettingsRepository,
)

__all__ = [
    # Models
    "Account",
    "AdminSetting",
    "Payment",
    "Base",
    "PaymentStatus",
    "utcnow",
    # Session management
    "get_db",
    "get_database_url",
    "init_db",
    "close_db",
    "create_async_engine",
    "get_async_session_factory",
    "get_db_context",
    # Repositories
    "PaymentRepository",
    "AccountRepository",
    "SettingsRepository",
]
