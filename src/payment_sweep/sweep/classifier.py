"""Pure staleness rules, kept free of I/O."""

from datetime import datetime, timedelta
from typing import Iterable, List, Tuple

from .models import PendingPayment


def payment_age(created_at: datetime, now: datetime) -> timedelta:
    return now - created_at


def is_stale(age: timedelta, grace_period: timedelta) -> bool:
    """A pending payment is stale once its age reaches the grace period (inclusive)."""
    return age >= grace_period


def classify(
    payments: Iterable[PendingPayment],
    now: datetime,
    grace_period: timedelta,
) -> Tuple[List[PendingPayment], List[PendingPayment]]:
    """Split payments into (stale, fresh), preserving input order."""
    stale: List[PendingPayment] = []
    fresh: List[PendingPayment] = []
    for payment in payments:
        if is_stale(payment_age(payment.created_at, now), grace_period):
            stale.append(payment)
        else:
            fresh.append(payment)
    return stale, fresh
