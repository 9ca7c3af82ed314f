"""
Shared test helpers.

No real API calls in tests: remote stores are in-memory fakes.
"""

import asyncio
import itertools
from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from paytrack.config import LedgerSettings
from paytrack.models.ledger import Payment
from paytrack.services.remote import InMemoryRemoteStore, StoreConnectionError


def make_payment(
    payment_id: str = "p-1",
    amount: str = "10",
    day: date = date(2026, 10, 1),
    workspace_id: str = "ws-1",
    **fields,
) -> Payment:
    return Payment(
        id=payment_id,
        date=day,
        amount=Decimal(amount),
        currency_code=fields.pop("currency_code", "MAD"),
        workspace_id=workspace_id,
        **fields,
    )


class FlakyRemoteStore(InMemoryRemoteStore):
    """In-memory store that fails selected operations or payment ids."""

    def __init__(self, payments=None, fail_ops: Optional[set] = None, fail_ids: Optional[set] = None):
        super().__init__(payments)
        self.fail_ops = fail_ops or set()
        self.fail_ids = fail_ids or set()

    def _maybe_fail(self, op: str, payment_id: str) -> None:
        if op in self.fail_ops or payment_id in self.fail_ids:
            self.calls.append((f"{op}_failed", payment_id))
            raise StoreConnectionError(f"{op} {payment_id} refused")

    async def create(self, payment: Payment) -> Payment:
        self._maybe_fail("create", payment.id)
        return await super().create(payment)

    async def update(self, payment_id: str, payment: Payment) -> Payment:
        self._maybe_fail("update", payment_id)
        return await super().update(payment_id, payment)

    async def delete(self, payment_id: str) -> None:
        self._maybe_fail("delete", payment_id)
        await super().delete(payment_id)


class GatedRemoteStore(InMemoryRemoteStore):
    """
    In-memory store whose writes block until `release` is set.

    Tracks how many writes run at the same time.
    Create it inside the running event loop.
    """

    def __init__(self, payments=None):
        super().__init__(payments)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.active = 0
        self.max_active = 0

    async def _gate(self) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.entered.set()
        try:
            await self.release.wait()
        finally:
            self.active -= 1

    async def create(self, payment: Payment) -> Payment:
        await self._gate()
        return await super().create(payment)

    async def update(self, payment_id: str, payment: Payment) -> Payment:
        await self._gate()
        return await super().update(payment_id, payment)


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    return LedgerSettings(default_currency="MAD", workspace_id="ws-1")


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"p-{next(counter)}"
