"""
Audit Models for SubTrack

Every change to the user's subscriptions is recorded as an audit event.
This provides:
1. Traceability of every add, edit and delete
2. Debugging information when storage or icon lookups fail
3. A history the user can inspect in the audit sheet

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Subscription lifecycle
    SUBSCRIPTION_CREATED = "subscription_created"
    SUBSCRIPTION_UPDATED = "subscription_updated"
    SUBSCRIPTION_DELETED = "subscription_deleted"
    RENEWAL_RESCHEDULED = "renewal_rescheduled"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Aggregation
    TOTALS_COMPUTED = "totals_computed"

    # Persistence
    SUBSCRIPTIONS_LOADED = "subscriptions_loaded"
    SAVE_FAILED = "save_failed"

    # Icons
    ICON_LOOKUP_FAILED = "icon_lookup_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'subscription', 'summary')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.subscription_created(sub_id, "Netflix", correlation_id)
        event = AuditEventBuilder.totals_computed(record_count, currencies, correlation_id)
    """

    @staticmethod
    def subscription_created(
        subscription_id: str,
        name: str,
        price: str,
        currency: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_CREATED,
            entity_type="subscription",
            entity_id=subscription_id,
            correlation_id=correlation_id,
            description=f"Subscription added: {name} - {price} {currency}",
            details={
                "name": name,
                "price": price,
                "currency": currency,
            },
            is_user_action=True,
        )

    @staticmethod
    def subscription_updated(
        subscription_id: str,
        name: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_UPDATED,
            entity_type="subscription",
            entity_id=subscription_id,
            correlation_id=correlation_id,
            description=f"Subscription updated: {name}",
            details={
                "name": name,
                "changed_fields": changed_fields,
            },
            is_user_action=True,
        )

    @staticmethod
    def subscription_deleted(
        subscription_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_DELETED,
            entity_type="subscription",
            entity_id=subscription_id,
            correlation_id=correlation_id,
            description=f"Subscription deleted: {subscription_id}",
            is_user_action=True,
        )

    @staticmethod
    def renewal_rescheduled(
        subscription_id: str,
        frequency: str,
        previous_date: str,
        next_date: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RENEWAL_RESCHEDULED,
            entity_type="subscription",
            entity_id=subscription_id,
            correlation_id=correlation_id,
            description=f"Renewal moved from {previous_date} to {next_date} ({frequency})",
            details={
                "frequency": frequency,
                "previous_date": previous_date,
                "next_date": next_date,
            },
        )

    @staticmethod
    def validation_failed(
        issues: list[dict],
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="subscription",
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def totals_computed(
        record_count: int,
        currencies: list[str],
        free_trial_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TOTALS_COMPUTED,
            severity=AuditSeverity.DEBUG,
            entity_type="summary",
            correlation_id=correlation_id,
            description=f"Totals computed over {record_count} subscriptions",
            details={
                "record_count": record_count,
                "currencies": currencies,
                "free_trial_count": free_trial_count,
            },
        )

    @staticmethod
    def subscriptions_loaded(
        record_count: int,
        backend: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTIONS_LOADED,
            severity=AuditSeverity.DEBUG,
            description=f"Loaded {record_count} subscriptions from {backend}",
            details={"record_count": record_count, "backend": backend},
            correlation_id=correlation_id,
        )

    @staticmethod
    def save_failed(
        subscription_id: Optional[str],
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="subscription",
            entity_id=subscription_id,
            description="Saving subscriptions failed",
            error_message=error_message,
            correlation_id=correlation_id,
        )

    @staticmethod
    def icon_lookup_failed(
        name: str,
        url: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ICON_LOOKUP_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"No icon found for {name}",
            error_message=error_message,
            details={"name": name, "url": url},
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
