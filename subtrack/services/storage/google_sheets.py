"""
Google Sheets Storage Implementation

An optional backend that keeps subscriptions in a spreadsheet, so they
can be viewed and edited directly in Sheets.

TRADEOFFS:
- Not suitable for high-volume data (a personal subscription list is tiny)
- No transactions (writes replace whole rows)
- No server-side filtering (we read everything and filter in Python)

The implementation follows the abstract interface, so the local store and
Sheets are interchangeable without touching business logic.
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from subtrack.config import get_settings
from subtrack.models.audit import AuditEvent, AuditEventType, AuditSeverity
from subtrack.models.subscription import SubscriptionRecord
from subtrack.services.storage.interface import (
    AuditStorageInterface,
    CorruptDataError,
    StorageConnectionError,
    StorageError,
    SubscriptionStorageInterface,
)
from subtrack.validation.validator import RecordValidationError, parse_record


# Column mappings for Subscriptions sheet
SUBSCRIPTION_COLUMNS = [
    "id",
    "name",
    "price",
    "currency",
    "frequency",
    "include_tax",
    "is_free_trial",
    "is_cancelled",
    "renewal_date",
    "icon_url",
    "updated_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
        return sheet

    def get_subscriptions_sheet(self) -> gspread.Worksheet:
        """Get or create the Subscriptions worksheet."""
        return self._get_or_create(
            self._settings.subscriptions_sheet_name,
            SUBSCRIPTION_COLUMNS,
            rows=200,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,
        )


def record_to_row(record: SubscriptionRecord) -> list:
    """Convert a SubscriptionRecord to a spreadsheet row."""
    return [
        record.id,
        record.name,
        str(record.price),
        record.currency.value,
        record.frequency.value,
        str(record.include_tax),
        str(record.is_free_trial),
        str(record.is_cancelled),
        record.renewal_date.isoformat(),
        record.icon_url or "",
        datetime.utcnow().isoformat(),
    ]


def row_to_record(row: list) -> SubscriptionRecord:
    """
    Convert a spreadsheet row to a SubscriptionRecord.

    Raises:
        RecordValidationError: If the row does not hold a valid subscription
    """
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default

    return parse_record({
        "id": safe_get(0),
        "name": safe_get(1),
        "price": safe_get(2),
        "currency": safe_get(3),
        "frequency": safe_get(4),
        "include_tax": safe_get(5, "False").lower() == "true",
        "is_free_trial": safe_get(6, "False").lower() == "true",
        "is_cancelled": safe_get(7, "False").lower() == "true",
        "renewal_date": safe_get(8),
        "icon_url": safe_get(9) or None,
    })


class GoogleSheetsSubscriptionStorage(SubscriptionStorageInterface):
    """
    Google Sheets implementation of subscription storage.

    One subscription per row, header in row 1.
    """

    backend_name = "google_sheets"

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _data_rows(self) -> list[list]:
        sheet = self._client.get_subscriptions_sheet()
        return sheet.get_all_values()[1:]

    async def list_subscriptions(self) -> list[SubscriptionRecord]:
        """List every subscription in sheet order."""
        try:
            rows = self._data_rows()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read subscriptions: {e}")

        records = []
        for offset, row in enumerate(rows, start=2):
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                records.append(row_to_record(row))
            except RecordValidationError as e:
                raise CorruptDataError(f"Row {offset} is not a valid subscription: {e}") from e
        return records

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def replace_all(self, subscriptions: list[SubscriptionRecord]) -> None:
        """Rewrite the whole sheet."""
        try:
            sheet = self._client.get_subscriptions_sheet()
            sheet.clear()
            sheet.append_row(SUBSCRIPTION_COLUMNS)
            if subscriptions:
                sheet.append_rows(
                    [record_to_row(record) for record in subscriptions],
                    value_input_option="RAW",
                )
        except Exception as e:
            raise StorageError(f"Failed to write subscriptions: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_subscription(self, subscription: SubscriptionRecord) -> bool:
        """Update the subscription's row in place, or append a new row."""
        try:
            sheet = self._client.get_subscriptions_sheet()
            all_rows = sheet.get_all_values()
            new_row = record_to_row(subscription)

            for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
                if row and row[0] == subscription.id:
                    sheet.update(
                        range_name=f"A{idx}",
                        values=[new_row],
                        value_input_option="RAW",
                    )
                    return True

            sheet.append_row(new_row, value_input_option="RAW")
            return False
        except Exception as e:
            raise StorageError(f"Failed to save subscription: {e}")

    async def delete_subscription(self, subscription_id: str) -> bool:
        """Delete the subscription's row."""
        try:
            sheet = self._client.get_subscriptions_sheet()
            all_rows = sheet.get_all_values()

            for idx, row in enumerate(all_rows[1:], start=2):
                if row and row[0] == subscription_id:
                    sheet.delete_rows(idx)
                    return True

            return False
        except Exception as e:
            raise StorageError(f"Failed to delete subscription: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        sheet = self._client.get_audit_sheet()
        sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
        return True

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except ValueError:
                    continue

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
