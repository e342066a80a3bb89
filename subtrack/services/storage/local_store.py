"""
Local Storage Implementation

Subscriptions live in a small JSON file that acts as a key-value store:
each key maps to a serialized string, and the subscription list is one
JSON array stored under a single key ("subscriptions" by default).

Writes go to a temporary file that is then renamed over the store, so a
crash mid-write leaves the previous contents intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog

from subtrack.config import get_settings
from subtrack.models.audit import AuditEvent
from subtrack.models.subscription import SubscriptionRecord
from subtrack.services.storage.interface import (
    AuditStorageInterface,
    CorruptDataError,
    StorageError,
    SubscriptionStorageInterface,
)
from subtrack.validation.validator import RecordValidationError, parse_record


logger = structlog.get_logger(__name__)


class KeyValueFile:
    """A JSON object on disk mapping string keys to string values."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Store file is not valid JSON: {self._path}: {e}") from e
        except UnicodeDecodeError as e:
            raise CorruptDataError(f"Store file is not valid UTF-8: {self._path}: {e}") from e
        except OSError as e:
            raise StorageError(f"Failed to read store file {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise CorruptDataError(f"Store file must hold a JSON object: {self._path}")
        return data

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def _write(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=".store-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(data, tmp, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write store file {self._path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)


class LocalSubscriptionStorage(SubscriptionStorageInterface):
    """
    Local key-value implementation of subscription storage.

    The list is serialized in the camelCase shape under one key.
    """

    backend_name = "local"

    def __init__(
        self,
        store: Optional[KeyValueFile] = None,
        key: Optional[str] = None,
    ):
        if store is None or key is None:
            settings = get_settings().storage
            store = store or KeyValueFile(settings.store_path)
            key = key or settings.storage_key
        self._store = store
        self._key = key

    async def list_subscriptions(self) -> list[SubscriptionRecord]:
        raw = self._store.get_item(self._key)
        if not raw:
            return []

        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Stored subscriptions are not valid JSON: {e}") from e
        if not isinstance(items, list):
            raise CorruptDataError("Stored subscriptions must be a JSON list")

        records = []
        for index, item in enumerate(items):
            try:
                records.append(parse_record(item))
            except (RecordValidationError, TypeError, AttributeError) as e:
                raise CorruptDataError(f"Stored subscription #{index} is invalid: {e}") from e
        return records

    async def replace_all(self, subscriptions: list[SubscriptionRecord]) -> None:
        payload = json.dumps([record.to_storage_dict() for record in subscriptions])
        self._store.set_item(self._key, payload)
        logger.debug("subscriptions_written", count=len(subscriptions), path=str(self._store.path))


class LocalAuditStorage(AuditStorageInterface):
    """Append-only audit log kept as JSON lines next to the store."""

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else get_settings().storage.data_dir / "audit.jsonl"

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(event.model_dump_json() + "\n")
            return True
        except OSError as e:
            logger.warning("audit_write_failed", error=str(e), path=str(self._path))
            return False

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        events = []
        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise StorageError(f"Failed to read audit log: {e}") from e
        for line in lines:
            if not line.strip():
                continue
            try:
                events.append(AuditEvent.model_validate_json(line))
            except ValueError:
                logger.warning("audit_line_skipped", path=str(self._path))
                continue
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
