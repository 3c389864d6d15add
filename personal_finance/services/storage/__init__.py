"""
Storage Services Package

Provides the document-store contract and its implementations:
an in-memory store and a Google Sheets backed store.
"""

from personal_finance.services.storage.interface import (
    ConnectionError,
    Document,
    DocumentStore,
    OrderBy,
    Predicate,
    StorageError,
    Subscription,
)
from personal_finance.services.storage.memory import InMemoryDocumentStore
from personal_finance.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)

__all__ = [
    # Interfaces
    "Document",
    "DocumentStore",
    "OrderBy",
    "Predicate",
    "Subscription",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
]
