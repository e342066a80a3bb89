"""
Shared fixtures for SubTrack tests.

No test touches the network or the user's real data directory: settings
are pointed at a temporary directory and backends are in-memory fakes.
"""

from datetime import date
from decimal import Decimal

import pytest

from subtrack.config import get_settings
from subtrack.models.subscription import SubscriptionRecord
from subtrack.services.icons import IconLookupError

from tests.fakes import FakeIconService, InMemoryAuditStorage, InMemorySubscriptionStorage


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point configuration at a temporary data directory."""
    monkeypatch.setenv("SUBTRACK_STORAGE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SUBTRACK_STORAGE_BACKEND", "local")
    monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
    monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


@pytest.fixture
def make_record():
    """Factory for valid subscription records."""
    def _make(**overrides) -> SubscriptionRecord:
        fields = {
            "name": "Netflix",
            "price": Decimal("15.99"),
            "renewal_date": date(2024, 3, 10),
        }
        fields.update(overrides)
        return SubscriptionRecord(**fields)
    return _make


@pytest.fixture
def memory_storage():
    return InMemorySubscriptionStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def unreachable_icon_service():
    return FakeIconService(error=IconLookupError("Icon service unreachable: timed out"))
