"""Payment store adapters used by the sweep."""

import uuid
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import PaymentRepository, PaymentStatus, utcnow
from .models import PendingPayment

logger = logging.getLogger(__name__)


class PaymentStoreBase(ABC):
    """Storage operations the sweep depends on."""

    @abstractmethod
    async def find_pending(self) -> List[PendingPayment]:
        """Return every pending payment with its display contact.

        Returns:
            PendingPayment objects ordered by creation time, oldest first.
        """
        raise NotImplementedError

    @abstractmethod
    async def bulk_expire(self, cutoff: datetime) -> int:
        """Atomically expire every pending payment created at or before cutoff.

        The condition must be evaluated by the store at update time.

        Args:
            cutoff: Latest creation time that is still stale.

        Returns:
            Number of payments transitioned.
        """
        raise NotImplementedError


class SQLAlchemyPaymentStore(PaymentStoreBase):
    """Payment store backed by an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.payment_repo = PaymentRepository(session)

    async def find_pending(self) -> List[PendingPayment]:
        rows = await self.payment_repo.list_pending_with_contact()
        return [
            PendingPayment(
                id=payment.id,
                utr=payment.utr,
                created_at=payment.created_at,
                display_contact=email,
            )
            for payment, email in rows
        ]

    async def bulk_expire(self, cutoff: datetime) -> int:
        try:
            count = await self.payment_repo.expire_pending_before(cutoff)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        return count


@dataclass
class StoredPayment:
    """In-memory representation of a payment row."""
    id: str
    status: str = PaymentStatus.PENDING.value
    utr: Optional[str] = None
    display_contact: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


class InMemoryPaymentStore(PaymentStoreBase):
    """
    Dict-backed payment store for local runs and tests.

    Also exposes verify() so the confirmation path can be simulated
    between a snapshot and a bulk update.
    """

    def __init__(self):
        self._payments: Dict[str, StoredPayment] = {}

    def add(
        self,
        payment_id: Optional[str] = None,
        status: str = PaymentStatus.PENDING.value,
        utr: Optional[str] = None,
        display_contact: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> StoredPayment:
        created = created_at or utcnow()
        payment = StoredPayment(
            id=payment_id or str(uuid.uuid4()),
            status=status,
            utr=utr,
            display_contact=display_contact,
            created_at=created,
            updated_at=created,
        )
        self._payments[payment.id] = payment
        return payment

    def get(self, payment_id: str) -> Optional[StoredPayment]:
        return self._payments.get(payment_id)

    def verify(self, payment_id: str) -> bool:
        """Move a pending payment to VERIFIED. Returns False if it was not pending."""
        payment = self._payments.get(payment_id)
        if payment is None or payment.status != PaymentStatus.PENDING.value:
            return False
        payment.status = PaymentStatus.VERIFIED.value
        payment.updated_at = utcnow()
        return True

    async def find_pending(self) -> List[PendingPayment]:
        pending = [
            p for p in self._payments.values()
            if p.status == PaymentStatus.PENDING.value
        ]
        pending.sort(key=lambda p: (p.created_at, p.id))
        return [
            PendingPayment(
                id=p.id,
                utr=p.utr,
                created_at=p.created_at,
                display_contact=p.display_contact,
            )
            for p in pending
        ]

    async def bulk_expire(self, cutoff: datetime) -> int:
        now = utcnow()
        count = 0
        for payment in self._payments.values():
            if payment.status == PaymentStatus.PENDING.value and payment.created_at <= cutoff:
                payment.status = PaymentStatus.EXPIRED.value
                payment.updated_at = now
                count += 1
        logger.debug(f"In-memory store expired {count} payments")
        return count
