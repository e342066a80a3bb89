"""Services package."""

from subtrack.services.icons import (
    IconLookupError,
    IconLookupService,
    IconResult,
)
from subtrack.services.storage import (
    AuditStorageInterface,
    CorruptDataError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSubscriptionStorage,
    LocalAuditStorage,
    LocalSubscriptionStorage,
    NotFoundError,
    StorageConnectionError,
    StorageError,
    SubscriptionStorageInterface,
)

__all__ = [
    # Icon services
    "IconLookupError",
    "IconLookupService",
    "IconResult",
    # Storage services
    "AuditStorageInterface",
    "CorruptDataError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsSubscriptionStorage",
    "LocalAuditStorage",
    "LocalSubscriptionStorage",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    "SubscriptionStorageInterface",
]
