"""
Subscription Form State

The add/edit form is a single immutable draft plus a pure reducer:

    new_state = reduce(draft, FieldChange(field="price_text", value="9.99"))

The reducer never touches storage; submit() turns a finished draft into
a SubscriptionRecord through the boundary validator.
"""

import re
from datetime import date
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from subtrack.config import get_settings
from subtrack.core.scheduler import next_renewal, resolve_frequency
from subtrack.models.subscription import (
    Currency,
    Frequency,
    SubscriptionRecord,
    generate_subscription_id,
)
from subtrack.services.icons.lookup import suggest_icon_url
from subtrack.validation.validator import parse_price_text, parse_record


CURRENCY_ORDER: tuple[Currency, ...] = tuple(Currency)

DraftField = Literal[
    "name",
    "price_text",
    "currency",
    "cycle_currency",
    "frequency",
    "include_tax",
    "is_free_trial",
    "is_cancelled",
    "renewal_date",
    "icon_url",
]


class SubscriptionDraft(BaseModel):
    """Snapshot of the subscription form."""
    model_config = ConfigDict(frozen=True)

    subscription_id: Optional[str] = Field(
        default=None,
        description="ID of the record being edited; None for a new subscription"
    )
    name: str = ""
    price_text: str = ""
    currency: Currency = Currency.CAD
    frequency: Frequency = Frequency.MONTHLY
    include_tax: bool = False
    is_free_trial: bool = False
    is_cancelled: bool = False
    renewal_date: date
    stored_renewal_date: Optional[date] = Field(
        default=None,
        description="Renewal date of the record being edited, used as the billing anchor"
    )
    icon_url: Optional[str] = None
    suggested_icon_url: Optional[str] = None
    today: date

    @property
    def is_existing(self) -> bool:
        return self.subscription_id is not None

    @property
    def date_label(self) -> str:
        return "End Date" if self.is_cancelled else "Renewal Date"


class FieldChange(BaseModel):
    """One edit made in the form."""
    model_config = ConfigDict(frozen=True)

    field: DraftField
    value: Any = None


def sanitize_price_text(text: str) -> str:
    """
    Keep digits and a single decimal point.

    "$1,299.99" -> "1299.99", "1.2.3" -> "1.23"
    """
    cleaned = re.sub(r"[^0-9.]", "", text)
    parts = cleaned.split(".")
    if len(parts) > 2:
        return parts[0] + "." + "".join(parts[1:])
    return cleaned


def next_currency(currency: Currency) -> Currency:
    """The currency after this one, wrapping around."""
    index = CURRENCY_ORDER.index(currency)
    return CURRENCY_ORDER[(index + 1) % len(CURRENCY_ORDER)]


def new_draft(today: Optional[date] = None, currency: Currency = Currency.CAD) -> SubscriptionDraft:
    """Empty form for a new subscription; renewal defaults to today."""
    today = today or date.today()
    return SubscriptionDraft(currency=currency, renewal_date=today, today=today)


def draft_from_record(record: SubscriptionRecord, today: Optional[date] = None) -> SubscriptionDraft:
    """Form pre-filled for editing an existing subscription."""
    return SubscriptionDraft(
        subscription_id=record.id,
        name=record.name,
        price_text=str(record.price),
        currency=record.currency,
        frequency=record.frequency,
        include_tax=record.include_tax,
        is_free_trial=record.is_free_trial,
        is_cancelled=record.is_cancelled,
        renewal_date=record.renewal_date,
        stored_renewal_date=record.renewal_date,
        icon_url=record.icon_url,
        today=today or date.today(),
    )


def reduce(draft: SubscriptionDraft, change: FieldChange) -> SubscriptionDraft:
    """Apply one field change and return the new draft."""
    field = change.field
    value = change.value

    if field == "name":
        name = value or ""
        icons = get_settings().icons
        return draft.model_copy(update={
            "name": name,
            "suggested_icon_url": suggest_icon_url(name, base_url=icons.logo_base_url, size=icons.size),
        })

    if field == "price_text":
        return draft.model_copy(update={"price_text": sanitize_price_text(value or "")})

    if field == "currency":
        return draft.model_copy(update={"currency": Currency(value)})

    if field == "cycle_currency":
        return draft.model_copy(update={"currency": next_currency(draft.currency)})

    if field == "frequency":
        frequency = resolve_frequency(value)
        # Editing keeps the stored billing anchor; new subscriptions anchor on today.
        renewal = next_renewal(
            frequency,
            current_renewal=draft.stored_renewal_date if draft.is_existing else None,
            today=draft.today,
        )
        return draft.model_copy(update={"frequency": frequency, "renewal_date": renewal})

    if field in ("include_tax", "is_free_trial", "is_cancelled"):
        flag = (not getattr(draft, field)) if value is None else bool(value)
        return draft.model_copy(update={field: flag})

    if field == "renewal_date":
        if not isinstance(value, date):
            raise TypeError(f"renewal_date must be a date, got {type(value).__name__}")
        return draft.model_copy(update={"renewal_date": value})

    if field == "icon_url":
        return draft.model_copy(update={"icon_url": value or None})

    raise ValueError(f"Unknown form field: {field}")


def submit(draft: SubscriptionDraft) -> SubscriptionRecord:
    """
    Turn a finished draft into a record.

    Unreadable price text is saved as 0.

    Raises:
        RecordValidationError: If the draft does not form a valid record
    """
    return parse_record({
        "id": draft.subscription_id or generate_subscription_id(),
        "name": draft.name,
        "price": parse_price_text(draft.price_text),
        "currency": draft.currency,
        "frequency": draft.frequency,
        "include_tax": draft.include_tax,
        "is_free_trial": draft.is_free_trial,
        "is_cancelled": draft.is_cancelled,
        "renewal_date": draft.renewal_date,
        "icon_url": draft.icon_url,
    })
