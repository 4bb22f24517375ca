"""Errors raised by the reconciliation sweep."""

from typing import Optional


class SweepError(Exception):
    """Base class for sweep failures."""


class InvalidConfiguration(SweepError, ValueError):
    """The sweep was asked to run with an unusable grace period."""


class StoreUnavailable(SweepError):
    """The payment store failed to serve a read or a write.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        message = f"Payment store unavailable during {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
