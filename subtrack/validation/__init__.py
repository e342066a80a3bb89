"""Validation package."""

from subtrack.validation.validator import (
    RecordValidationError,
    SubscriptionValidator,
    check_record,
    parse_price_text,
    parse_record,
)

__all__ = [
    "RecordValidationError",
    "SubscriptionValidator",
    "check_record",
    "parse_price_text",
    "parse_record",
]
