"""Repository layer for payment persistence operations."""

import logging
from datetime import datetime
from typing import Optional, List, Tuple

from sqlalchemy import select, update, and_
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    Account,
    AdminSetting,
    Payment,
    PaymentStatus,
    utcnow,
)

logger = logging.getLogger(__name__)


class PaymentRepository:
    """Repository for Payment queries and status transitions."""

    def __init__(self, session: AsyncSession):
        """Initialize the repository with a database session.

        Args:
            session: AsyncSession instance for database operations.
        """
        self.session = session

    async def create(
        self,
        utr: Optional[str] = None,
        owner_id: Optional[str] = None,
        status: str = PaymentStatus.PENDING.value,
        created_at: Optional[datetime] = None,
    ) -> Payment:
        """Create a new payment record.

        Args:
            utr: Payer-supplied unique transaction reference.
            owner_id: ID of the owning account.
            status: Initial payment status.
            created_at: Creation time; defaults to now.

        Returns:
            Created Payment instance.
        """
        now = created_at or utcnow()
        payment = Payment(
            utr=utr,
            owner_id=owner_id,
            status=status,
            created_at=now,
            updated_at=now,
        )
        self.session.add(payment)
        await self.session.flush()

        logger.info(f"Created payment {payment.id} with status {status}")
        return payment

    async def list_pending_with_contact(self) -> List[Tuple[Payment, Optional[str]]]:
        """List every pending payment joined with its owner's email.

        Returns:
            (Payment, email) pairs ordered by creation time, oldest first.
            The email is None when the payment has no resolvable owner.
        """
        result = await self.session.execute(
            select(Payment, Account.email)
            .outerjoin(Account, Payment.owner_id == Account.id)
            .where(Payment.status == PaymentStatus.PENDING.value)
            .order_by(Payment.created_at, Payment.id)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def expire_pending_before(self, cutoff: datetime) -> int:
        """Mark every pending payment created at or before cutoff as expired.

        The condition is evaluated by the database in a single UPDATE, so
        payments confirmed in the meantime are left alone.

        Args:
            cutoff: Latest creation time that is still considered stale.

        Returns:
            Number of payments transitioned.
        """
        result = await self.session.execute(
            update(Payment)
            .where(
                and_(
                    Payment.status == PaymentStatus.PENDING.value,
                    Payment.created_at <= cutoff,
                )
            )
            .values(status=PaymentStatus.EXPIRED.value, updated_at=utcnow())
        )
        await self.session.flush()
        return result.rowcount

    async def mark_verified(self, payment_id: str) -> bool:
        """Confirm a pending payment.

        Returns:
            True if the payment was pending and is now verified.
        """
        result = await self.session.execute(
            update(Payment)
            .where(
                and_(
                    Payment.id == payment_id,
                    Payment.status == PaymentStatus.PENDING.value,
                )
            )
            .values(status=PaymentStatus.VERIFIED.value, updated_at=utcnow())
        )
        await self.session.flush()
        if result.rowcount:
            logger.info(f"Payment {payment_id} verified")
        return bool(result.rowcount)


class AccountRepository:
    """Repository for Account records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, email: str, name: Optional[str] = None) -> Account:
        account = Account(email=email.strip().lower(), name=name)
        self.session.add(account)
        await self.session.flush()
        logger.info(f"Created account {account.id}")
        return account


class SettingsRepository:
    """Key-value store for operational settings."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, key: str) -> Optional[str]:
        """Return the stored value for key, or None."""
        result = await self.session.execute(
            select(AdminSetting.value).where(AdminSetting.key == key)
        )
        return result.scalar_one_or_none()

    async def upsert(self, key: str, value: str) -> AdminSetting:
        """Create or overwrite a setting.

        Args:
            key: Setting name, e.g. "payment_qr_url".
            value: New value.

        Returns:
            The stored AdminSetting.
        """
        result = await self.session.execute(
            select(AdminSetting).where(AdminSetting.key == key)
        )
        setting = result.scalar_one_or_none()
        if setting is None:
            setting = AdminSetting(key=key, value=value)
            self.session.add(setting)
        else:
            setting.value = value
            setting.updated_at = utcnow()
        await self.session.flush()

        logger.info(f"Setting {key} updated")
        return setting
