"""Services package."""

from paytrack.services.remote import (
    AuthenticationError,
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRemoteStore,
    HttpRemoteStore,
    InMemoryRemoteStore,
    NotFoundError,
    RemotePaymentStore,
    RemoteStoreError,
    StoreConnectionError,
)

__all__ = [
    "AuthenticationError",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRemoteStore",
    "HttpRemoteStore",
    "InMemoryRemoteStore",
    "NotFoundError",
    "RemotePaymentStore",
    "RemoteStoreError",
    "StoreConnectionError",
]
