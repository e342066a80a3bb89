"""
Audit Logger

Every change to the subscription list is logged. This provides:
1. Traceability of adds, edits and deletes
2. Debugging capability when storage or icon lookups fail
3. A history the user can review

The audit logger:
- Always logs locally through structlog
- Optionally persists events to an audit storage backend
- Never lets a storage failure escape into the main flow
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from subtrack.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from subtrack.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_log_level(level: str = "INFO") -> None:
    """Route structlog output to stderr at the given level."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    # basicConfig is a no-op once handlers exist, so set the level explicitly too
    logging.basicConfig(format="%(message)s", level=numeric_level)
    logging.getLogger().setLevel(numeric_level)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend (local JSON lines or Google Sheets)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("subtrack.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_subscription_created(
        self,
        subscription_id: str,
        name: str,
        price: str,
        currency: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new subscription."""
        await self.log(AuditEventBuilder.subscription_created(
            subscription_id=subscription_id,
            name=name,
            price=price,
            currency=currency,
            correlation_id=correlation_id,
        ))

    async def log_subscription_updated(
        self,
        subscription_id: str,
        name: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an edited subscription."""
        await self.log(AuditEventBuilder.subscription_updated(
            subscription_id=subscription_id,
            name=name,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))

    async def log_subscription_deleted(
        self,
        subscription_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.subscription_deleted(
            subscription_id=subscription_id,
            correlation_id=correlation_id,
        ))

    async def log_renewal_rescheduled(
        self,
        subscription_id: str,
        frequency: str,
        previous_date: str,
        next_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.renewal_rescheduled(
            subscription_id=subscription_id,
            frequency=frequency,
            previous_date=previous_date,
            next_date=next_date,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        issues: list[dict],
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected record."""
        await self.log(AuditEventBuilder.validation_failed(
            issues=issues,
            entity_id=entity_id,
            correlation_id=correlation_id,
        ))

    async def log_totals_computed(
        self,
        record_count: int,
        currencies: list[str],
        free_trial_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.totals_computed(
            record_count=record_count,
            currencies=currencies,
            free_trial_count=free_trial_count,
            correlation_id=correlation_id,
        ))

    async def log_subscriptions_loaded(
        self,
        record_count: int,
        backend: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.subscriptions_loaded(
            record_count=record_count,
            backend=backend,
            correlation_id=correlation_id,
        ))

    async def log_save_failed(
        self,
        subscription_id: Optional[str],
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.save_failed(
            subscription_id=subscription_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_icon_lookup_failed(
        self,
        name: str,
        url: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.icon_lookup_failed(
            name=name,
            url=url,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failure of a backend the app depends on."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., saving the form).
    Pass it through all subsequent operations.
    """
    return uuid4()
