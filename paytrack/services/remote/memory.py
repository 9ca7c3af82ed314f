"""
In-Memory Remote Store

A dict-backed RemotePaymentStore. Used when no backend is configured
(local-only mode) and as the store under test.

Every call is recorded in `calls` as (operation, payment_id) so tests can
assert on exactly what reached the "server".
"""

from typing import Optional

from paytrack.models.ledger import Payment
from paytrack.services.remote.interface import (
    DuplicateError,
    NotFoundError,
    RemotePaymentStore,
    StoreConnectionError,
)


class InMemoryRemoteStore(RemotePaymentStore):
    """Remote store kept in a dict keyed by payment id."""

    def __init__(self, payments: Optional[list[Payment]] = None):
        self._payments: dict[str, Payment] = {p.id: p for p in payments or []}
        self.calls: list[tuple[str, str]] = []
        self._offline = False

    def set_offline(self, offline: bool = True) -> None:
        """Simulate a lost connection: every call fails until reset."""
        self._offline = offline

    def get(self, payment_id: str) -> Optional[Payment]:
        return self._payments.get(payment_id)

    @property
    def payments(self) -> dict[str, Payment]:
        return dict(self._payments)

    def _check_online(self) -> None:
        if self._offline:
            raise StoreConnectionError("In-memory store is offline")

    async def create(self, payment: Payment) -> Payment:
        self._check_online()
        self.calls.append(("create", payment.id))
        if payment.id in self._payments:
            raise DuplicateError(f"Payment already exists: {payment.id}")
        self._payments[payment.id] = payment
        return payment

    async def update(self, payment_id: str, payment: Payment) -> Payment:
        self._check_online()
        self.calls.append(("update", payment_id))
        if payment_id not in self._payments:
            raise NotFoundError(f"Payment not found: {payment_id}")
        self._payments[payment_id] = payment
        return payment

    async def delete(self, payment_id: str) -> None:
        self._check_online()
        self.calls.append(("delete", payment_id))
        self._payments.pop(payment_id, None)

    async def list_payments(
        self,
        workspace_id: str,
        year: int,
        month: int,
    ) -> list[Payment]:
        self._check_online()
        self.calls.append(("list", f"{workspace_id}:{year:04d}-{month + 1:02d}"))
        return sorted(
            (
                p for p in self._payments.values()
                if p.workspace_id == workspace_id
                and p.date.year == year
                and p.date.month == month + 1
            ),
            key=lambda p: (p.date, p.id),
        )
