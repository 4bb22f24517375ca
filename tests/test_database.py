"""Tests for database models, repositories, and the SQL payment store."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from payment_sweep.database import (
    Payment,
    PaymentStatus,
    PaymentRepository,
    AccountRepository,
    SettingsRepository,
)
from payment_sweep.sweep import (
    ReconciliationSweep,
    SQLAlchemyPaymentStore,
    StoreUnavailable,
)


GRACE = timedelta(minutes=5)


@pytest.fixture
async def owner(db_session):
    return await AccountRepository(db_session).create("Owner@Example.com", name="Owner")


@pytest.fixture
async def scenario_payments(db_session, owner, now):
    """Pending 10m, pending 2m, verified 10m."""
    repo = PaymentRepository(db_session)
    old = await repo.create(utr="123456789012", owner_id=owner.id,
                            created_at=now - timedelta(minutes=10))
    young = await repo.create(utr="210987654321", owner_id=owner.id,
                              created_at=now - timedelta(minutes=2))
    verified = await repo.create(utr="111122223333", owner_id=owner.id,
                                 status=PaymentStatus.VERIFIED.value,
                                 created_at=now - timedelta(minutes=10))
    await db_session.commit()
    return old, young, verified


class TestPaymentModel:
    """Tests for the Payment model."""

    async def test_create_payment_defaults(self, db_session):
        payment = Payment(utr="123456789012")
        db_session.add(payment)
        await db_session.flush()

        assert payment.id is not None
        assert payment.status == "pending"
        assert payment.created_at is not None
        assert payment.updated_at is not None


class TestAccountRepository:
    """Tests for AccountRepository."""

    async def test_email_is_normalized(self, owner):
        assert owner.email == "owner@example.com"
        assert owner.name == "Owner"


class TestPaymentRepository:
    """Tests for PaymentRepository."""

    async def test_list_pending_with_contact(self, db_session, scenario_payments):
        old, young, _ = scenario_payments
        rows = await PaymentRepository(db_session).list_pending_with_contact()

        assert [p.id for p, _ in rows] == [old.id, young.id]
        assert all(email == "owner@example.com" for _, email in rows)

    async def test_pending_without_owner_has_no_contact(self, db_session, now):
        repo = PaymentRepository(db_session)
        await repo.create(utr="999988887777", created_at=now)

        rows = await repo.list_pending_with_contact()

        assert len(rows) == 1
        assert rows[0][1] is None

    async def test_expire_pending_before(self, db_session, scenario_payments, now):
        old, young, verified = scenario_payments
        repo = PaymentRepository(db_session)

        count = await repo.expire_pending_before(now - GRACE)

        assert count == 1
        for payment in (old, young, verified):
            await db_session.refresh(payment)
        assert old.status == "expired"
        assert young.status == "pending"
        assert verified.status == "verified"
        assert old.created_at == now - timedelta(minutes=10)

    async def test_mark_verified_only_from_pending(self, db_session, scenario_payments, now):
        old, _, _ = scenario_payments
        repo = PaymentRepository(db_session)
        await repo.expire_pending_before(now - GRACE)

        assert await repo.mark_verified(old.id) is False
        await db_session.refresh(old)
        assert old.status == "expired"


class TestSettingsRepository:
    """Tests for SettingsRepository."""

    async def test_upsert_creates_then_updates(self, db_session):
        repo = SettingsRepository(db_session)

        await repo.upsert("payment_qr_url", "https://example.com/a.png")
        await repo.upsert("payment_qr_url", "https://example.com/b.png")

        assert await repo.get("payment_qr_url") == "https://example.com/b.png"

    async def test_missing_key(self, db_session):
        assert await SettingsRepository(db_session).get("nope") is None


class TestSQLAlchemyPaymentStore:
    """Sweep behaviour against a real (SQLite) database."""

    async def test_scenario_against_database(self, db_session, scenario_payments, clock):
        old, young, verified = scenario_payments
        sweep = ReconciliationSweep(SQLAlchemyPaymentStore(db_session), clock=clock)

        report = await sweep.run_sweep(GRACE)

        assert [e.id for e in report.pending_listing] == [old.id, young.id]
        assert report.pending_listing[0].display_contact == "owner@example.com"
        assert report.expired_count == 1
        for payment in (old, young, verified):
            await db_session.refresh(payment)
        assert old.status == "expired"
        assert young.status == "pending"
        assert verified.status == "verified"

    async def test_idempotent_against_database(self, db_session, scenario_payments, clock):
        sweep = ReconciliationSweep(SQLAlchemyPaymentStore(db_session), clock=clock)

        first = await sweep.run_sweep(GRACE)
        second = await sweep.run_sweep(GRACE)

        assert first.expired_count == 1
        assert second.expired_count == 0

    async def test_boundary_against_database(self, db_session, owner, now, clock):
        repo = PaymentRepository(db_session)
        edge = await repo.create(owner_id=owner.id, created_at=now - GRACE)
        young = await repo.create(owner_id=owner.id,
                                  created_at=now - GRACE + timedelta(microseconds=1))
        await db_session.commit()

        report = await ReconciliationSweep(
            SQLAlchemyPaymentStore(db_session), clock=clock
        ).run_sweep(GRACE)

        assert report.expired_count == 1
        await db_session.refresh(edge)
        await db_session.refresh(young)
        assert edge.status == "expired"
        assert young.status == "pending"

    async def test_confirmation_after_snapshot(self, db_session, scenario_payments, clock):
        old, _, _ = scenario_payments

        class ConfirmingStore(SQLAlchemyPaymentStore):
            async def find_pending(self):
                snapshot = await super().find_pending()
                await self.payment_repo.mark_verified(old.id)
                return snapshot

        report = await ReconciliationSweep(
            ConfirmingStore(db_session), clock=clock
        ).run_sweep(GRACE)

        assert old.id in [e.id for e in report.pending_listing]
        assert report.expired_count == 0
        await db_session.refresh(old)
        assert old.status == "verified"

    async def test_database_error_becomes_store_unavailable(self, db_session, clock):
        store = SQLAlchemyPaymentStore(db_session)

        async def broken():
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        store.payment_repo.list_pending_with_contact = broken

        with pytest.raises(StoreUnavailable) as exc_info:
            await ReconciliationSweep(store, clock=clock).run_sweep(GRACE)

        assert isinstance(exc_info.value.__cause__, OperationalError)

    async def test_write_failure_rolls_back_and_changes_nothing(
        self, db_session, scenario_payments, clock
    ):
        old, young, verified = scenario_payments
        store = SQLAlchemyPaymentStore(db_session)
        cause = OperationalError("UPDATE", {}, Exception("database is locked"))
        store.payment_repo.expire_pending_before = AsyncMock(side_effect=cause)

        with patch.object(db_session, "rollback", wraps=db_session.rollback) as rollback:
            with pytest.raises(StoreUnavailable) as exc_info:
                await ReconciliationSweep(store, clock=clock).run_sweep(GRACE)

        assert exc_info.value.operation == "bulk_expire"
        assert exc_info.value.__cause__ is cause
        rollback.assert_awaited_once()
        for payment in (old, young, verified):
            await db_session.refresh(payment)
        assert old.status == "pending"
        assert young.status == "pending"
        assert verified.status == "verified"
