"""Subscription form state."""

from subtrack.forms.draft import (
    FieldChange,
    SubscriptionDraft,
    draft_from_record,
    new_draft,
    next_currency,
    reduce,
    sanitize_price_text,
    submit,
)

__all__ = [
    "FieldChange",
    "SubscriptionDraft",
    "draft_from_record",
    "new_draft",
    "next_currency",
    "reduce",
    "sanitize_price_text",
    "submit",
]
