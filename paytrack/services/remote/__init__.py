"""
Remote Store Package

Provides the abstract remote-store interface and its implementations:
in-memory (local mode, tests), HTTP REST API and Google Sheets.
"""

from paytrack.services.remote.interface import (
    AuthenticationError,
    DuplicateError,
    NotFoundError,
    RemotePaymentStore,
    RemoteStoreError,
    StoreConnectionError,
)
from paytrack.services.remote.memory import InMemoryRemoteStore
from paytrack.services.remote.http_store import HttpRemoteStore
from paytrack.services.remote.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRemoteStore,
)

__all__ = [
    # Interface
    "RemotePaymentStore",
    # Exceptions
    "AuthenticationError",
    "DuplicateError",
    "NotFoundError",
    "RemoteStoreError",
    "StoreConnectionError",
    # Implementations
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRemoteStore",
    "HttpRemoteStore",
    "InMemoryRemoteStore",
]
