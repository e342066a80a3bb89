"""
Subscription Validation

Validation happens at the boundary, before any value reaches the
scheduler or the aggregator:

RECORD VALIDATION (hard):
- Currency and frequency must come from their closed enumerations
- Price must be a finite, non-negative number
- Name must be non-empty
- Any violation raises RecordValidationError

DRAFT VALIDATION (soft):
- Runs on the form before submission
- Reports issues for the user instead of raising
- Flags suspicious values (past renewal date, unusually high price)

IMPORTANT: Validation NEVER silently fixes issues. Unknown currencies are
rejected, not passed through as their own bucket.
"""

from collections.abc import Mapping
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from pydantic import ValidationError

from subtrack.models.subscription import (
    CURRENCY_SYMBOLS,
    Currency,
    Frequency,
    SubscriptionRecord,
    ValidationIssue,
    ValidationResult,
)

if TYPE_CHECKING:
    from subtrack.forms.draft import SubscriptionDraft


class RecordValidationError(ValueError):
    """A subscription record violates its contract."""

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or []

    def issue_dicts(self) -> list[dict]:
        return [issue.model_dump() for issue in self.issues]


def _error(field: str, issue_type: str, message: str, suggested_fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
        suggested_fix=suggested_fix,
    )


def parse_price_text(text: str) -> Decimal:
    """
    Parse the price typed into the form.

    Empty or unparseable text counts as zero.
    """
    try:
        value = Decimal(text.strip())
    except (InvalidOperation, AttributeError):
        return Decimal("0")
    if not value.is_finite():
        return Decimal("0")
    return value


def _raw_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _enum_issues(raw: Mapping[str, Any]) -> list[ValidationIssue]:
    """Check the closed enumerations explicitly for clearer messages."""
    issues = []

    currency = _raw_value(raw.get("currency"))
    if currency is not None and (
        not isinstance(currency, str) or currency not in {c.value for c in Currency}
    ):
        issues.append(_error(
            "currency",
            "unknown_currency",
            f"Unsupported currency: {currency!r}",
            suggested_fix=f"Use one of {', '.join(c.value for c in Currency)}",
        ))

    frequency = _raw_value(raw.get("frequency"))
    if frequency is not None and (
        not isinstance(frequency, str) or frequency not in {f.value for f in Frequency}
    ):
        issues.append(_error(
            "frequency",
            "unknown_frequency",
            f"Unsupported billing frequency: {frequency!r}",
            suggested_fix=f"Use one of {', '.join(f.value for f in Frequency)}",
        ))

    return issues


def parse_record(raw: Mapping[str, Any]) -> SubscriptionRecord:
    """
    Build a SubscriptionRecord from its persisted (or form) shape.

    Accepts camelCase or snake_case keys.

    Raises:
        RecordValidationError: If any field violates the record contract
    """
    if isinstance(raw, SubscriptionRecord):
        return check_record(raw)

    issues = _enum_issues(raw)
    if issues:
        raise RecordValidationError(issues[0].message, issues)

    try:
        return SubscriptionRecord.model_validate(dict(raw))
    except ValidationError as e:
        issues = [
            _error(
                field=".".join(str(part) for part in err["loc"]) or "record",
                issue_type=err["type"],
                message=err["msg"],
            )
            for err in e.errors()
        ]
        raise RecordValidationError(
            f"Invalid subscription record: {issues[0].field}: {issues[0].message}",
            issues,
        ) from e


def check_record(record: SubscriptionRecord) -> SubscriptionRecord:
    """
    Re-check the invariants of an already-built record.

    Records built with model_construct() skip pydantic validation, so the
    aggregator calls this on every input.
    """
    issues = []

    if not isinstance(record.currency, Currency):
        issues.append(_error("currency", "unknown_currency", f"Unsupported currency: {record.currency!r}"))
    if not isinstance(record.frequency, Frequency):
        issues.append(_error("frequency", "unknown_frequency", f"Unsupported billing frequency: {record.frequency!r}"))

    price = record.price
    if not isinstance(price, Decimal):
        try:
            price = Decimal(str(price))
        except InvalidOperation:
            price = Decimal("NaN")
    if not price.is_finite():
        issues.append(_error("price", "invalid_value", f"Price must be a finite number, got {record.price!r}"))
    elif price < 0:
        issues.append(_error("price", "invalid_value", f"Price cannot be negative, got {record.price}"))

    if issues:
        raise RecordValidationError(
            f"Invalid subscription {record.name!r}: {issues[0].message}",
            issues,
        )
    return record


class SubscriptionValidator:
    """
    Validates form drafts before they become records.

    Draft validation never raises; it returns a ValidationResult the UI
    shows to the user.
    """

    def __init__(self, max_reasonable_price: Optional[Decimal] = None):
        """
        Initialize validator.

        Args:
            max_reasonable_price: Prices above this are flagged.
                                  If None, the configured value is used.
        """
        if max_reasonable_price is None:
            from subtrack.config import get_settings

            max_reasonable_price = Decimal(str(get_settings().app.max_reasonable_price))
        self._max_price = max_reasonable_price

    def validate_draft(
        self,
        draft: "SubscriptionDraft",
        today: Optional[date] = None,
    ) -> ValidationResult:
        """Check a draft and report every issue found."""
        today = today or draft.today
        issues = []

        if not draft.name.strip():
            issues.append(_error(
                "name",
                "missing",
                "Subscription name is required",
                suggested_fix="Enter the name of the service",
            ))

        text = draft.price_text.strip()
        try:
            price = Decimal(text) if text else Decimal("0")
        except InvalidOperation:
            price = None
        if price is None or not price.is_finite():
            issues.append(ValidationIssue(
                field="price",
                issue_type="unparseable",
                message=f"Price {draft.price_text!r} could not be read and will be saved as 0",
                severity="warning",
            ))
        elif price > self._max_price:
            symbol = CURRENCY_SYMBOLS[draft.currency]
            issues.append(ValidationIssue(
                field="price",
                issue_type="suspicious_value",
                message=f"Price ({symbol}{price:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if not draft.is_cancelled and draft.renewal_date < today:
            issues.append(ValidationIssue(
                field="renewal_date",
                issue_type="past_date",
                message=f"Renewal date ({draft.renewal_date}) is in the past",
                severity="warning",
                suggested_fix="Pick the next upcoming renewal date",
            ))

        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Generate a short summary of validation results for the form."""
        if result.is_valid and not result.warnings:
            return "✅ Looks good!"

        lines = []
        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")

        if result.warnings:
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
