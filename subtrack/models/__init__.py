"""
Data Models Package

This package contains all Pydantic models used in SubTrack.
All data flowing through the system must conform to these schemas.
"""

from subtrack.models.subscription import (
    CURRENCY_SYMBOLS,
    FREQUENCY_LABELS,
    Currency,
    Frequency,
    SpendSummary,
    SubscriptionRecord,
    ValidationIssue,
    ValidationResult,
    generate_subscription_id,
    round_for_display,
)
from subtrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Subscription models
    "CURRENCY_SYMBOLS",
    "FREQUENCY_LABELS",
    "Currency",
    "Frequency",
    "SpendSummary",
    "SubscriptionRecord",
    "ValidationIssue",
    "ValidationResult",
    "generate_subscription_id",
    "round_for_display",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
