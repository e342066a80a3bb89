"""
Main Orchestrator for SubTrack

Ties the components together and defines the end-to-end flows for:
1. Editing subscriptions (form draft -> record -> storage)
2. Totals (storage -> aggregator -> display)

The orchestrator enforces the boundaries:
- Nothing is persisted unless it passes record validation
- Totals are computed from exactly what storage holds
- Every change is audited
"""

from datetime import date
from typing import Optional
from uuid import UUID

import structlog

from subtrack.audit import AuditLogger, configure_log_level, create_correlation_id
from subtrack.config import get_settings
from subtrack.core.aggregator import aggregate
from subtrack.core.scheduler import roll_forward
from subtrack.forms.draft import SubscriptionDraft, submit
from subtrack.models.subscription import SpendSummary, SubscriptionRecord
from subtrack.services.icons import IconLookupError, IconLookupService, IconResult
from subtrack.services.storage import (
    AuditStorageInterface,
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
from subtrack.validation import RecordValidationError


logger = structlog.get_logger(__name__)

# Fields compared when auditing an edit
TRACKED_FIELDS = (
    "name",
    "price",
    "currency",
    "frequency",
    "include_tax",
    "is_free_trial",
    "is_cancelled",
    "renewal_date",
    "icon_url",
)


def changed_fields(before: SubscriptionRecord, after: SubscriptionRecord) -> list[str]:
    """Names of the fields that differ between two versions of a record."""
    return [name for name in TRACKED_FIELDS if getattr(before, name) != getattr(after, name)]


async def _report_load_failure(
    audit_logger: Optional[AuditLogger],
    backend: str,
    error: StorageError,
    correlation_id: Optional[UUID] = None,
) -> None:
    if audit_logger is None:
        return
    if isinstance(error, StorageConnectionError):
        await audit_logger.log_external_service_error(
            service=backend,
            error_message=str(error),
            correlation_id=correlation_id,
        )
    else:
        await audit_logger.log_error(
            error_type=type(error).__name__,
            error_message=str(error),
            details={"backend": backend},
            correlation_id=correlation_id,
        )


class SubscriptionFlow:
    """
    Orchestrates adding, editing and deleting subscriptions.

    Flow:
    1. Form edits -> SubscriptionDraft (pure reducer)
    2. Submit -> SubscriptionRecord (boundary validation)
    3. Save -> storage
    4. Audit
    """

    def __init__(
        self,
        storage: SubscriptionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        icon_service: Optional[IconLookupService] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._icon_service = icon_service

    async def list_subscriptions(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> list[SubscriptionRecord]:
        """All stored subscriptions, in storage order."""
        try:
            records = await self._storage.list_subscriptions()
        except StorageError as e:
            await _report_load_failure(
                self._audit_logger, self._storage.backend_name, e, correlation_id
            )
            raise

        if self._audit_logger:
            await self._audit_logger.log_subscriptions_loaded(
                record_count=len(records),
                backend=self._storage.backend_name,
                correlation_id=correlation_id,
            )
        return records

    async def save_draft(
        self,
        draft: SubscriptionDraft,
        correlation_id: Optional[UUID] = None,
    ) -> SubscriptionRecord:
        """
        Validate a finished form and persist it.

        New drafts are inserted; drafts for existing subscriptions replace
        the stored record, keeping its ID.

        Raises:
            RecordValidationError: If the draft is not a valid record
            NotFoundError: If the edited subscription no longer exists
            StorageError: If persisting fails
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            record = submit(draft)
        except RecordValidationError as e:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    issues=e.issue_dicts(),
                    entity_id=draft.subscription_id,
                    correlation_id=correlation_id,
                )
            raise

        previous = None
        if draft.is_existing:
            previous = await self._storage.get_subscription(record.id)
            if previous is None:
                raise NotFoundError(f"Subscription not found: {record.id}")

        try:
            await self._storage.save_subscription(record)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_save_failed(
                    subscription_id=record.id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            if previous is None:
                await self._audit_logger.log_subscription_created(
                    subscription_id=record.id,
                    name=record.name,
                    price=str(record.price),
                    currency=record.currency.value,
                    correlation_id=correlation_id,
                )
            else:
                await self._audit_logger.log_subscription_updated(
                    subscription_id=record.id,
                    name=record.name,
                    changed_fields=changed_fields(previous, record),
                    correlation_id=correlation_id,
                )
                if previous.renewal_date != record.renewal_date:
                    await self._audit_logger.log_renewal_rescheduled(
                        subscription_id=record.id,
                        frequency=record.frequency.value,
                        previous_date=previous.renewal_date.isoformat(),
                        next_date=record.renewal_date.isoformat(),
                        correlation_id=correlation_id,
                    )

        return record

    async def delete_subscription(
        self,
        subscription_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Delete a subscription. Returns False if it did not exist."""
        deleted = await self._storage.delete_subscription(subscription_id)
        if deleted and self._audit_logger:
            await self._audit_logger.log_subscription_deleted(
                subscription_id=subscription_id,
                correlation_id=correlation_id,
            )
        return deleted

    async def upcoming_renewals(
        self,
        today: Optional[date] = None,
    ) -> list[tuple[SubscriptionRecord, date]]:
        """
        Active subscriptions with their next renewal on or after today,
        soonest first.

        Stale stored dates are rolled forward for display only; storage is
        not modified.
        """
        today = today or date.today()
        records = await self._storage.list_subscriptions()
        upcoming = [
            (record, roll_forward(record.frequency, record.renewal_date, today))
            for record in records
            if not record.is_cancelled
        ]
        upcoming.sort(key=lambda pair: (pair[1], pair[0].name.lower()))
        return upcoming

    async def find_icon(
        self,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[IconResult]:
        """
        Find an icon for a subscription name.

        Returns None when there is no icon service, no icon, or the service
        is unreachable.
        """
        if self._icon_service is None:
            return None
        try:
            return await self._icon_service.find_icon(name)
        except IconLookupError as e:
            if self._audit_logger:
                await self._audit_logger.log_icon_lookup_failed(
                    name=name,
                    url=self._icon_service.suggest(name).url if name.strip() else "",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return None


class TotalsFlow:
    """
    Orchestrates the totals view.

    Storage -> aggregate() -> SpendSummary. A single invalid stored record
    fails the whole computation.
    """

    def __init__(
        self,
        storage: SubscriptionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    async def compute_totals(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> SpendSummary:
        """
        Load every subscription and aggregate monthly spend.

        Raises:
            StorageError: If subscriptions cannot be loaded
            RecordValidationError: If a record violates its contract
        """
        try:
            records = await self._storage.list_subscriptions()
        except StorageError as e:
            await _report_load_failure(
                self._audit_logger, self._storage.backend_name, e, correlation_id
            )
            raise

        try:
            summary = aggregate(records)
        except RecordValidationError as e:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    issues=e.issue_dicts(),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_totals_computed(
                record_count=summary.record_count,
                currencies=sorted(c.value for c in summary.total),
                free_trial_count=summary.free_trial_count,
                correlation_id=correlation_id,
            )
        return summary


def create_storage(
    backend: Optional[str] = None,
) -> tuple[SubscriptionStorageInterface, Optional[AuditStorageInterface]]:
    """
    Build the configured subscription and audit storage.

    Args:
        backend: "local" or "google_sheets". Defaults to the configured backend.
    """
    backend = backend or get_settings().storage.backend

    if backend == "google_sheets":
        sheets_client = GoogleSheetsClient()
        return (
            GoogleSheetsSubscriptionStorage(sheets_client),
            GoogleSheetsAuditStorage(sheets_client),
        )
    if backend == "local":
        return LocalSubscriptionStorage(), LocalAuditStorage()
    raise ValueError(f"Unknown storage backend: {backend}")


def create_app_components(
    backend: Optional[str] = None,
    with_icons: bool = True,
) -> tuple[SubscriptionFlow, TotalsFlow]:
    """
    Factory function to create all application components.

    Falls back to the local store when the configured backend cannot be
    set up (e.g. Google Sheets credentials are missing).

    Returns:
        (subscription_flow, totals_flow)
    """
    settings = get_settings()
    configure_log_level(settings.app.log_level)

    try:
        storage, audit_storage = create_storage(backend)
    except Exception as e:
        logger.warning("storage_unavailable_falling_back_to_local", error=str(e))
        storage, audit_storage = create_storage("local")

    audit_logger = AuditLogger(audit_storage)
    icon_service = IconLookupService() if with_icons else None

    subscription_flow = SubscriptionFlow(
        storage=storage,
        audit_logger=audit_logger,
        icon_service=icon_service,
    )
    totals_flow = TotalsFlow(
        storage=storage,
        audit_logger=audit_logger,
    )
    return subscription_flow, totals_flow
