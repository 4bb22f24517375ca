"""Service layer for the reconciliation sweep."""

import asyncio
import math
import os
import uuid
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..database import utcnow
from .classifier import classify, payment_age, is_stale
from .errors import InvalidConfiguration, StoreUnavailable
from .models import PendingListingEntry, SweepReport
from .report import ReportGenerator
from .store import PaymentStoreBase

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD_MINUTES = 5

# Failures a store may raise while reading or writing
STORE_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


def grace_period_from_minutes(minutes: float) -> timedelta:
    """Build a grace period from a number of minutes.

    Raises:
        InvalidConfiguration: If minutes is not a finite number or does not
            fit in a timedelta.
    """
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)):
        raise InvalidConfiguration(f"Grace period minutes must be a number, got {minutes!r}")
    if not math.isfinite(minutes):
        raise InvalidConfiguration(f"Grace period minutes must be finite, got {minutes}")
    try:
        return timedelta(minutes=minutes)
    except OverflowError as e:
        raise InvalidConfiguration(f"Grace period of {minutes} minutes is out of range") from e


def get_grace_period() -> timedelta:
    """
    Get the grace period from SWEEP_GRACE_PERIOD_MINUTES.

    Falls back to DEFAULT_GRACE_PERIOD_MINUTES when unset.

    Raises:
        InvalidConfiguration: If the variable is not a finite number of minutes.
    """
    raw = os.getenv("SWEEP_GRACE_PERIOD_MINUTES")
    if not raw:
        return timedelta(minutes=DEFAULT_GRACE_PERIOD_MINUTES)
    try:
        minutes = float(raw)
    except ValueError as e:
        raise InvalidConfiguration(
            f"SWEEP_GRACE_PERIOD_MINUTES must be a number, got {raw!r}"
        ) from e
    return grace_period_from_minutes(minutes)


def compute_cutoff(now: datetime, grace_period: timedelta) -> datetime:
    try:
        return now - grace_period
    except OverflowError as e:
        raise InvalidConfiguration(
            f"Grace period {grace_period} reaches before the earliest representable time"
        ) from e


def validate_grace_period(grace_period: timedelta, now: Optional[datetime] = None) -> None:
    if not isinstance(grace_period, timedelta):
        raise InvalidConfiguration(
            f"Grace period must be a timedelta, got {type(grace_period).__name__}"
        )
    if grace_period <= timedelta(0):
        raise InvalidConfiguration(
            f"Grace period must be positive, got {grace_period}"
        )
    compute_cutoff(now or utcnow(), grace_period)


class ReconciliationSweep:
    """Expires pending payments that outlived their grace period.

    Correctness rests on the store's conditional bulk update. The snapshot
    is only used for the report and may be stale by the time the update
    runs; confirmations that land in between are excluded by the store.
    """

    def __init__(
        self,
        store: PaymentStoreBase,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the sweep.

        Args:
            store: Payment store to read from and update.
            clock: Returns the current naive UTC time. Defaults to utcnow.
        """
        self.store = store
        self._clock = clock or utcnow

    async def run_sweep(self, grace_period: Optional[timedelta] = None) -> SweepReport:
        """Run one sweep.

        Args:
            grace_period: Minimum age before a pending payment is expired.
                Defaults to get_grace_period().

        Returns:
            SweepReport with the pending snapshot and the expired count.

        Raises:
            InvalidConfiguration: If the grace period is not positive or
                reaches before the earliest representable time.
            StoreUnavailable: If the store read or write fails.
        """
        if grace_period is None:
            grace_period = get_grace_period()
        # One timestamp for both classification and the update cutoff
        now = self._clock()
        validate_grace_period(grace_period, now)
        cutoff = compute_cutoff(now, grace_period)
        sweep_id = str(uuid.uuid4())

        logger.info(f"Starting sweep {sweep_id} with grace period {grace_period} (cutoff {cutoff})")

        try:
            pending = await self.store.find_pending()
        except STORE_ERRORS as e:
            logger.error(f"Sweep {sweep_id} failed to read pending payments: {e}")
            raise StoreUnavailable("find_pending", e) from e

        stale, fresh = classify(pending, now, grace_period)
        logger.info(
            f"Sweep {sweep_id} snapshot: {len(pending)} pending, "
            f"{len(stale)} stale, {len(fresh)} within grace period"
        )

        try:
            expired_count = await self.store.bulk_expire(cutoff)
        except STORE_ERRORS as e:
            logger.error(f"Sweep {sweep_id} failed to expire payments: {e}")
            raise StoreUnavailable("bulk_expire", e) from e

        if expired_count != len(stale):
            logger.warning(
                f"Sweep {sweep_id}: snapshot had {len(stale)} stale payments "
                f"but the store expired {expired_count}"
            )
        logger.info(f"Sweep {sweep_id} expired {expired_count} pending payments")

        listing = []
        for payment in pending:
            age = payment_age(payment.created_at, now)
            listing.append(PendingListingEntry(
                id=payment.id,
                display_contact=payment.display_contact,
                utr=payment.utr,
                created_at=payment.created_at,
                age_seconds=age.total_seconds(),
                stale=is_stale(age, grace_period),
            ))

        return SweepReport(
            id=sweep_id,
            run_at=now,
            cutoff=cutoff,
            grace_period_seconds=grace_period.total_seconds(),
            pending_count=len(pending),
            stale_count=len(stale),
            fresh_count=len(fresh),
            expired_count=expired_count,
            pending_listing=listing,
        )

    def generate_report(
        self,
        report: SweepReport,
        format: str = "json",
        include_details: bool = True,
    ) -> str:
        """Render a sweep report.

        Args:
            report: SweepReport to format.
            format: Output format ('json', 'csv', 'text', 'detailed_text').
            include_details: Include the pending listing (JSON only).

        Returns:
            Formatted report string.
        """
        generator = ReportGenerator(report)

        if format == "json":
            return generator.to_json(include_details=include_details)
        elif format == "csv":
            return generator.to_csv()
        elif format == "text":
            return generator.to_summary_text()
        elif format == "detailed_text":
            return generator.to_detailed_text()
        else:
            raise ValueError(f"Unsupported report format: {format}")
