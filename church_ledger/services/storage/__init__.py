"""
Storage Services Package

Provides the abstract ledger storage interface and its implementations.
Google Sheets is the shared backend; the in-memory store serves tests
and offline use.
"""

from church_ledger.services.storage.interface import (
    Collection,
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from church_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
)
from church_ledger.services.storage.memory import InMemoryLedgerStorage

__all__ = [
    # Interface
    "Collection",
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "InMemoryLedgerStorage",
]
