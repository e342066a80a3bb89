"""
Core Data Models for SubTrack

These models define the schemas for every subscription value flowing
through the system:
1. Closed enumerations for currency and billing frequency
2. The persisted subscription record
3. The monthly spend summary produced by the aggregator
4. Validation issues reported at the input boundary

DESIGN DECISION: Records are immutable. The core never edits a record in
place; every change produces a new record.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from fractions import Fraction
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Currency(str, Enum):
    """
    Supported currencies.

    Amounts are tracked per currency and never converted.
    The declaration order is the order the form cycles through.
    """
    CAD = "CAD"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"


class Frequency(str, Enum):
    """Billing frequency of a subscription."""
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUAL = "semi-annual"
    YEARLY = "yearly"


CURRENCY_SYMBOLS: dict[Currency, str] = {
    Currency.CAD: "C$",
    Currency.USD: "$",
    Currency.EUR: "€",
    Currency.GBP: "£",
}

FREQUENCY_LABELS: dict[Frequency, str] = {
    Frequency.MONTHLY: "Monthly",
    Frequency.YEARLY: "Yearly",
    Frequency.QUARTERLY: "Quarterly",
    Frequency.WEEKLY: "Weekly",
    Frequency.BI_WEEKLY: "Bi-weekly",
    Frequency.SEMI_ANNUAL: "Semi-annual",
}

DISPLAY_QUANTUM = Decimal("0.01")


def generate_subscription_id() -> str:
    """Create a new opaque subscription identifier."""
    return uuid4().hex


def round_for_display(amount: Fraction) -> Decimal:
    """
    Round an exact amount to two decimal places (half-up).

    Only call this when presenting a value. Sums must be built from the
    exact amounts.
    """
    value = Decimal(amount.numerator) / Decimal(amount.denominator)
    return value.quantize(DISPLAY_QUANTUM, rounding=ROUND_HALF_UP)


# =============================================================================
# CORE SUBSCRIPTION MODEL
# =============================================================================

class SubscriptionRecord(BaseModel):
    """
    A recurring service the user pays for.

    Field names are snake_case in Python and camelCase when serialized,
    which is the shape stored under the "subscriptions" key.

    renewal_date is the next renewal while active and the end date once
    the subscription is cancelled.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        default_factory=generate_subscription_id,
        min_length=1,
        description="Opaque subscription identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name of the service"
    )
    price: Decimal = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        description="Price charged per billing cycle"
    )
    currency: Currency = Field(
        default=Currency.CAD,
        description="Currency the price is charged in"
    )
    frequency: Frequency = Field(
        default=Frequency.MONTHLY,
        description="Billing frequency"
    )
    include_tax: bool = Field(
        default=False,
        description="Apply the flat sales tax surcharge"
    )
    is_free_trial: bool = False
    is_cancelled: bool = False
    renewal_date: date = Field(
        ...,
        description="Next renewal (active) or end date (cancelled)"
    )
    icon_url: Optional[str] = Field(
        default=None,
        max_length=500,
        description="URL of the service icon"
    )

    @property
    def currency_symbol(self) -> str:
        return CURRENCY_SYMBOLS[self.currency]

    @property
    def date_label(self) -> str:
        """Label shown next to the renewal date in the list view."""
        return "Ends" if self.is_cancelled else "Renews"

    def to_storage_dict(self) -> dict:
        """Serialize to the persisted (camelCase, JSON-safe) shape."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# AGGREGATION MODELS
# =============================================================================

class SpendSummary(BaseModel):
    """
    Monthly-equivalent spend, grouped by currency.

    Amounts are exact fractions. active and cancelled partition total:
    for every currency, total == active + cancelled (missing keys count
    as zero). Currencies without records are absent.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    total: dict[Currency, Fraction] = Field(default_factory=dict)
    active: dict[Currency, Fraction] = Field(default_factory=dict)
    cancelled: dict[Currency, Fraction] = Field(default_factory=dict)
    free_trial_count: int = Field(default=0, ge=0)
    record_count: int = Field(default=0, ge=0)

    @property
    def is_empty(self) -> bool:
        return self.record_count == 0

    def rounded(self) -> dict[str, dict[str, Decimal]]:
        """All buckets rounded to two decimals, keyed by currency code."""
        return {
            "total": {c.value: round_for_display(v) for c, v in self.total.items()},
            "active": {c.value: round_for_display(v) for c, v in self.active.items()},
            "cancelled": {c.value: round_for_display(v) for c, v in self.cancelled.items()},
        }


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_currency')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Result of checking a draft or a raw record."""

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
