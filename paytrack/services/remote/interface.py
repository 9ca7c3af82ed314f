"""
Abstract Remote Store Interface

DESIGN DECISION: The mutation queue talks to the remote store only through
this interface. This allows us to:
1. Swap the REST API for Google Sheets (or anything else)
2. Use an in-memory store for testing and offline mode
3. Keep the sync logic independent of the transport

The interface is the logical create/update/delete contract keyed by the
client-generated payment id. Transport details (retries, auth, timeouts)
belong to the implementations.
"""

from abc import ABC, abstractmethod

from paytrack.models.ledger import Payment


class RemotePaymentStore(ABC):
    """
    Abstract interface for the remote payment store.

    Every implementation raises RemoteStoreError (or a subclass) on failure.
    """

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        """
        Create a payment under its client-generated id.

        Args:
            payment: Snapshot of the payment to store

        Returns:
            The payment as stored remotely

        Raises:
            DuplicateError: If the id already exists
            RemoteStoreError: If the store rejects or cannot be reached
        """
        pass

    @abstractmethod
    async def update(self, payment_id: str, payment: Payment) -> Payment:
        """
        Replace the stored payment with this snapshot.

        Raises:
            NotFoundError: If the id does not exist remotely
            RemoteStoreError: If the store rejects or cannot be reached
        """
        pass

    @abstractmethod
    async def delete(self, payment_id: str) -> None:
        """
        Delete a payment by id.

        Deleting an id the store does not know is not an error: the
        end state (payment absent) is what the caller asked for.
        """
        pass

    @abstractmethod
    async def list_payments(
        self,
        workspace_id: str,
        year: int,
        month: int,
    ) -> list[Payment]:
        """
        List the stored payments of a workspace for one calendar month.

        Args:
            workspace_id: Workspace to read
            year: Calendar year
            month: Zero-based month (0 = January)
        """
        pass


class RemoteStoreError(Exception):
    """Base exception for remote store operations."""
    pass


class NotFoundError(RemoteStoreError):
    """Payment not found in the remote store."""
    pass


class DuplicateError(RemoteStoreError):
    """Attempted to create a payment id that already exists."""
    pass


class AuthenticationError(RemoteStoreError):
    """The remote store rejected our credentials."""
    pass


class StoreConnectionError(RemoteStoreError):
    """Could not reach the remote store, or it failed server-side."""
    pass
