"""
Renewal Scheduler

Computes the date one billing cycle after an anchor date.

RULES:
- Day-based frequencies add calendar days (weekly +7, bi-weekly +14)
- Month-based frequencies add calendar months and clamp to the last
  valid day of the target month (Jan 31 + 1 month = Feb 28/29)
- An unrecognized frequency is scheduled as monthly

Everything here is a pure function of its arguments.
"""

from datetime import date, datetime
from typing import Optional, Union

import structlog
from dateutil.relativedelta import relativedelta

from subtrack.models.subscription import Frequency


logger = structlog.get_logger(__name__)

# Frequency used when the caller passes a value outside the enumeration.
FALLBACK_FREQUENCY = Frequency.MONTHLY

# relativedelta clamps month arithmetic to the end of the target month.
CYCLE_OFFSETS: dict[Frequency, relativedelta] = {
    Frequency.WEEKLY: relativedelta(days=7),
    Frequency.BI_WEEKLY: relativedelta(days=14),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.QUARTERLY: relativedelta(months=3),
    Frequency.SEMI_ANNUAL: relativedelta(months=6),
    Frequency.YEARLY: relativedelta(years=1),
}


def resolve_frequency(frequency: Union[Frequency, str]) -> Frequency:
    """
    Map a raw frequency value onto the enumeration.

    Unknown values resolve to FALLBACK_FREQUENCY.
    """
    if isinstance(frequency, Frequency):
        return frequency
    try:
        return Frequency(frequency)
    except ValueError:
        logger.warning(
            "unknown_frequency_fallback",
            frequency=repr(frequency),
            fallback=FALLBACK_FREQUENCY.value,
        )
        return FALLBACK_FREQUENCY


def _as_calendar_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if not isinstance(value, date):
        raise TypeError(f"Expected a date, got {type(value).__name__}")
    return value


def advance_once(frequency: Union[Frequency, str], anchor_date: date) -> date:
    """
    Return the date exactly one billing cycle after anchor_date.

    The result is always strictly later than the anchor.

    Raises:
        TypeError: If anchor_date is not a date
    """
    anchor = _as_calendar_date(anchor_date)
    resolved = resolve_frequency(frequency)
    return anchor + CYCLE_OFFSETS[resolved]


def next_renewal(
    frequency: Union[Frequency, str],
    current_renewal: Optional[date] = None,
    today: Optional[date] = None,
) -> date:
    """
    Next renewal date after a frequency change.

    Existing subscriptions keep their billing anchor: the next date is
    computed from the stored renewal date. New subscriptions anchor on today.
    """
    if current_renewal is not None:
        return advance_once(frequency, current_renewal)
    return advance_once(frequency, today or date.today())


def roll_forward(
    frequency: Union[Frequency, str],
    renewal_date: date,
    today: Optional[date] = None,
) -> date:
    """
    Advance a stale renewal date until it is on or after today.

    Dates already on or after today are returned unchanged.
    """
    today = _as_calendar_date(today or date.today())
    current = _as_calendar_date(renewal_date)
    resolved = resolve_frequency(frequency)
    while current < today:
        current = advance_once(resolved, current)
    return current
