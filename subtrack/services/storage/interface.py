"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the default local key-value store and Google Sheets interchangeable
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The subscription list is small, so the interface deals in whole records
rather than queries.
"""

from abc import ABC, abstractmethod
from typing import Optional

from subtrack.models.subscription import SubscriptionRecord
from subtrack.models.audit import AuditEvent


class SubscriptionStorageInterface(ABC):
    """
    Abstract interface for subscription storage operations.

    Any storage implementation must implement these methods.
    """

    backend_name: str = "unknown"

    @abstractmethod
    async def list_subscriptions(self) -> list[SubscriptionRecord]:
        """
        Return every stored subscription, in insertion order.

        Raises:
            StorageError: If the backend cannot be read
            CorruptDataError: If a stored record is not a valid subscription
        """
        pass

    @abstractmethod
    async def replace_all(self, subscriptions: list[SubscriptionRecord]) -> None:
        """
        Overwrite the stored list.

        Raises:
            StorageError: If the write fails
        """
        pass

    async def get_subscription(self, subscription_id: str) -> Optional[SubscriptionRecord]:
        """Return the subscription with this ID, or None."""
        for record in await self.list_subscriptions():
            if record.id == subscription_id:
                return record
        return None

    async def save_subscription(self, subscription: SubscriptionRecord) -> bool:
        """
        Insert a subscription, or replace the stored one with the same ID.

        Returns:
            True if an existing record was replaced, False if inserted
        """
        records = await self.list_subscriptions()
        replaced = False
        updated = []
        for record in records:
            if record.id == subscription.id:
                updated.append(subscription)
                replaced = True
            else:
                updated.append(record)
        if not replaced:
            updated.append(subscription)
        await self.replace_all(updated)
        return replaced

    async def delete_subscription(self, subscription_id: str) -> bool:
        """
        Delete a subscription by ID.

        Returns:
            True if deleted, False if no such subscription existed
        """
        records = await self.list_subscriptions()
        remaining = [record for record in records if record.id != subscription_id]
        if len(remaining) == len(records):
            return False
        await self.replace_all(remaining)
        return True


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class CorruptDataError(StorageError):
    """Stored data could not be decoded into subscriptions."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
