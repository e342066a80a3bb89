"""
Spend Aggregator

Reduces a collection of subscriptions to monthly-equivalent spend per
currency, split into active and cancelled.

For each record:
1. price x frequency multiplier -> monthly-equivalent
2. x 1.13 when include_tax is set (once, after normalization)
3. added to total[currency] and to active or cancelled[currency]
4. free trials are counted regardless of cancellation

Amounts stay exact (Fraction) until display. Currencies are never
converted or mixed.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from fractions import Fraction
from typing import Any, Union

from subtrack.models.subscription import (
    CURRENCY_SYMBOLS,
    Currency,
    Frequency,
    SpendSummary,
    SubscriptionRecord,
    round_for_display,
)
from subtrack.validation.validator import parse_record


# Flat sales tax applied to subscriptions flagged include_tax.
TAX_RATE = Fraction(13, 100)

# Exact monthly-equivalent multipliers (billing cycles per year / 12).
MONTHLY_MULTIPLIERS: dict[Frequency, Fraction] = {
    Frequency.WEEKLY: Fraction(52, 12),
    Frequency.BI_WEEKLY: Fraction(26, 12),
    Frequency.MONTHLY: Fraction(1),
    Frequency.QUARTERLY: Fraction(1, 3),
    Frequency.SEMI_ANNUAL: Fraction(1, 6),
    Frequency.YEARLY: Fraction(1, 12),
}


def monthly_equivalent(record: SubscriptionRecord) -> Fraction:
    """Monthly cost of one subscription, tax included when flagged."""
    amount = Fraction(record.price) * MONTHLY_MULTIPLIERS[record.frequency]
    if record.include_tax:
        amount *= 1 + TAX_RATE
    return amount


def _add(bucket: dict[Currency, Fraction], currency: Currency, amount: Fraction) -> None:
    bucket[currency] = bucket.get(currency, Fraction(0)) + amount


def aggregate(
    records: Iterable[Union[SubscriptionRecord, Mapping[str, Any]]],
) -> SpendSummary:
    """
    Compute the monthly spend summary for a set of subscriptions.

    Raw mappings (the persisted shape) are validated first. The whole call
    fails on the first invalid record; there are no partial results.

    Raises:
        RecordValidationError: If any record violates its contract
    """
    total: dict[Currency, Fraction] = {}
    active: dict[Currency, Fraction] = {}
    cancelled: dict[Currency, Fraction] = {}
    free_trial_count = 0
    record_count = 0

    for raw in records:
        record = parse_record(raw)
        amount = monthly_equivalent(record)

        _add(total, record.currency, amount)
        if record.is_cancelled:
            _add(cancelled, record.currency, amount)
        else:
            _add(active, record.currency, amount)

        if record.is_free_trial:
            free_trial_count += 1
        record_count += 1

    return SpendSummary(
        total=total,
        active=active,
        cancelled=cancelled,
        free_trial_count=free_trial_count,
        record_count=record_count,
    )


def format_amount(amount: Union[Fraction, Decimal], currency: Currency) -> str:
    """Format an amount for display, e.g. C$12.50."""
    rounded = round_for_display(Fraction(amount))
    return f"{CURRENCY_SYMBOLS[currency]}{rounded}"
