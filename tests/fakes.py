"""In-memory doubles for storage and icon services."""

from typing import Optional

from subtrack.models.audit import AuditEvent
from subtrack.models.subscription import SubscriptionRecord
from subtrack.services.icons import IconResult, suggest_icon_url
from subtrack.services.storage import (
    AuditStorageInterface,
    StorageConnectionError,
    StorageError,
    SubscriptionStorageInterface,
)


class InMemorySubscriptionStorage(SubscriptionStorageInterface):
    """Subscription storage backed by a Python list."""

    backend_name = "memory"

    def __init__(self, records=None):
        self.records = list(records or [])
        self.writes = 0

    async def list_subscriptions(self) -> list[SubscriptionRecord]:
        return list(self.records)

    async def replace_all(self, subscriptions: list[SubscriptionRecord]) -> None:
        self.records = list(subscriptions)
        self.writes += 1


class ReadOnlySubscriptionStorage(InMemorySubscriptionStorage):
    """Reads succeed, every write fails."""

    async def replace_all(self, subscriptions: list[SubscriptionRecord]) -> None:
        raise StorageError("disk full")


class UnreachableSubscriptionStorage(InMemorySubscriptionStorage):
    """The backend cannot be reached at all."""

    backend_name = "google_sheets"

    async def list_subscriptions(self) -> list[SubscriptionRecord]:
        raise StorageConnectionError("Spreadsheet not found: abc")


class InMemoryAuditStorage(AuditStorageInterface):
    """Audit sink that keeps events in memory."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]

    def event_types(self) -> list[str]:
        return [event.event_type.value for event in self.events]


class BrokenAuditStorage(AuditStorageInterface):
    """Audit sink whose writes always raise."""

    async def append_event(self, event: AuditEvent) -> bool:
        raise StorageError("audit sheet unavailable")

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return []


class FakeIconService:
    """Icon service double: returns a fixed result or raises."""

    def __init__(self, result: Optional[IconResult] = None, error: Optional[Exception] = None):
        self._result = result
        self._error = error
        self.lookups: list[str] = []

    def suggest(self, name: str) -> Optional[IconResult]:
        url = suggest_icon_url(name)
        if url is None:
            return None
        return IconResult(id="logo-1", url=url, title=name.lower().strip())

    async def find_icon(self, name: str) -> Optional[IconResult]:
        self.lookups.append(name)
        if self._error is not None:
            raise self._error
        return self._result
