"""
Storage Services Package

Provides the abstract storage interface and its implementations: a local
JSON key-value store (default) and Google Sheets.
"""

from subtrack.services.storage.interface import (
    AuditStorageInterface,
    CorruptDataError,
    NotFoundError,
    StorageConnectionError,
    StorageError,
    SubscriptionStorageInterface,
)
from subtrack.services.storage.local_store import (
    KeyValueFile,
    LocalAuditStorage,
    LocalSubscriptionStorage,
)
from subtrack.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSubscriptionStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SubscriptionStorageInterface",
    # Exceptions
    "CorruptDataError",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # Local implementation
    "KeyValueFile",
    "LocalAuditStorage",
    "LocalSubscriptionStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsSubscriptionStorage",
]
