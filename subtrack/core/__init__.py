"""Renewal scheduling and spend aggregation."""

from subtrack.core.aggregator import (
    MONTHLY_MULTIPLIERS,
    TAX_RATE,
    aggregate,
    format_amount,
    monthly_equivalent,
)
from subtrack.core.scheduler import (
    FALLBACK_FREQUENCY,
    advance_once,
    next_renewal,
    resolve_frequency,
    roll_forward,
)

__all__ = [
    "FALLBACK_FREQUENCY",
    "MONTHLY_MULTIPLIERS",
    "TAX_RATE",
    "advance_once",
    "aggregate",
    "format_amount",
    "monthly_equivalent",
    "next_renewal",
    "resolve_frequency",
    "roll_forward",
]
