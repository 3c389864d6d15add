"""Services package."""

from personal_finance.services.auth import AuthProvider, JWTAuthProvider
from personal_finance.services.realtime import RealtimeListenerService
from personal_finance.services.storage import (
    ConnectionError,
    DocumentStore,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    StorageError,
    Subscription,
)

__all__ = [
    # Auth
    "AuthProvider",
    "JWTAuthProvider",
    # Realtime
    "RealtimeListenerService",
    # Storage services
    "ConnectionError",
    "DocumentStore",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    "StorageError",
    "Subscription",
]
