"""Shared test fixtures and configuration."""

import asyncio
import os
from datetime import datetime, timedelta
from typing import Any, Dict, List

import pytest
from sqlalchemy import select

# Set up test environment variables before importing modules
os.environ.setdefault("API_KEY", "test_api_key_12345")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from payment_sweep.database import (
    Base,
    Payment,
    PaymentRepository,
    AccountRepository,
    create_async_engine,
    get_async_session_factory,
)
from payment_sweep.sweep import InMemoryPaymentStore


NOW = datetime(2026, 10, 19, 12, 0, 0)


@pytest.fixture
def now():
    """Fixed sweep time."""
    return NOW


@pytest.fixture
def clock(now):
    """Clock returning the fixed sweep time."""
    return lambda: now


@pytest.fixture
def memory_store():
    """Empty in-memory payment store."""
    return InMemoryPaymentStore()


@pytest.fixture
def scenario_store(memory_store, now):
    """Two pending payments (10 and 2 minutes old) and one old verified one."""
    memory_store.add("1", status="pending", utr="123456789012",
                     display_contact="a@example.com", created_at=now - timedelta(minutes=10))
    memory_store.add("2", status="pending", utr="210987654321",
                     display_contact="b@example.com", created_at=now - timedelta(minutes=2))
    memory_store.add("3", status="verified", utr="111122223333",
                     display_contact="c@example.com", created_at=now - timedelta(minutes=10))
    return memory_store


# Database fixtures for integration tests
@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing."""
    engine = create_async_engine(
        database_url="sqlite+aiosqlite:///:memory:",
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a database session for testing."""
    session_factory = get_async_session_factory(db_engine)
    async with session_factory() as session:
        yield session


async def _seed(database_url: str, payments: List[Dict[str, Any]]) -> List[str]:
    engine = create_async_engine(database_url=database_url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        session_factory = get_async_session_factory(engine)
        async with session_factory() as session:
            account = await AccountRepository(session).create("owner@example.com")
            repo = PaymentRepository(session)
            ids = []
            for spec in payments:
                payment = await repo.create(owner_id=account.id, **spec)
                ids.append(payment.id)
            await session.commit()
            return ids
    finally:
        await engine.dispose()


async def _statuses(database_url: str) -> Dict[str, str]:
    engine = create_async_engine(database_url=database_url)
    try:
        session_factory = get_async_session_factory(engine)
        async with session_factory() as session:
            result = await session.execute(select(Payment.id, Payment.status))
            return {row[0]: row[1] for row in result.all()}
    finally:
        await engine.dispose()


@pytest.fixture
def file_database_url(tmp_path, monkeypatch):
    """Point DATABASE_URL at a throwaway SQLite file."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'sweep.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    return url


@pytest.fixture
def seed_file_database(file_database_url):
    """Synchronously seed the file database; returns created payment IDs."""
    def seed(payments: List[Dict[str, Any]]) -> List[str]:
        return asyncio.run(_seed(file_database_url, payments))
    return seed


@pytest.fixture
def read_file_statuses(file_database_url):
    """Synchronously read {payment_id: status} from the file database."""
    def read() -> Dict[str, str]:
        return asyncio.run(_statuses(file_database_url))
    return read
