"""Run a sweep against the in-memory store and print the detailed report."""

import asyncio
from datetime import timedelta

from payment_sweep.database import utcnow
from payment_sweep.sweep import InMemoryPaymentStore, ReconciliationSweep


async def main():
    now = utcnow()
    store = InMemoryPaymentStore()
    store.add(utr="123456789012", display_contact="asha@example.com",
              created_at=now - timedelta(minutes=12))
    store.add(utr="210987654321", display_contact="ravi@example.com",
              created_at=now - timedelta(minutes=1))
    store.add(utr="111122223333", display_contact="meena@example.com",
              status="verified", created_at=now - timedelta(hours=2))

    sweep = ReconciliationSweep(store)
    report = await sweep.run_sweep(timedelta(minutes=5))
    print(sweep.generate_report(report, format="detailed_text"))


if __name__ == "__main__":
    asyncio.run(main())
