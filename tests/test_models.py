"""
Tests for SubTrack models

Test strategy:
1. Unit tests for individual components (models, scheduler, aggregator)
2. Integration tests for flows (with in-memory storage)
3. No real network calls in tests
"""

import pytest
from datetime import date
from decimal import Decimal
from fractions import Fraction
from uuid import uuid4

from subtrack.models.subscription import (
    Currency,
    Frequency,
    SpendSummary,
    SubscriptionRecord,
    ValidationIssue,
    ValidationResult,
    round_for_display,
)
from subtrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestSubscriptionModels:
    """Tests for the subscription record."""

    def test_record_defaults(self):
        """Test SubscriptionRecord creation with defaults."""
        record = SubscriptionRecord(
            name="Netflix",
            price=Decimal("15.99"),
            renewal_date=date(2024, 1, 1),
        )
        assert record.currency == Currency.CAD
        assert record.frequency == Frequency.MONTHLY
        assert record.include_tax is False
        assert record.is_free_trial is False
        assert record.is_cancelled is False
        assert record.icon_url is None
        assert len(record.id) == 32

    def test_record_ids_are_unique(self):
        a = SubscriptionRecord(name="A", price=Decimal("1"), renewal_date=date(2024, 1, 1))
        b = SubscriptionRecord(name="B", price=Decimal("1"), renewal_date=date(2024, 1, 1))
        assert a.id != b.id

    def test_record_strips_whitespace(self):
        """Test that whitespace is stripped from the name."""
        record = SubscriptionRecord(
            name="  Spotify  ",
            price=Decimal("9.99"),
            renewal_date=date(2024, 1, 1),
        )
        assert record.name == "Spotify"

    def test_record_rejects_negative_price(self):
        """Test that negative prices are rejected."""
        with pytest.raises(ValueError):
            SubscriptionRecord(
                name="Test",
                price=Decimal("-1"),
                renewal_date=date(2024, 1, 1),
            )

    def test_record_rejects_nan_price(self):
        with pytest.raises(ValueError):
            SubscriptionRecord(
                name="Test",
                price=Decimal("NaN"),
                renewal_date=date(2024, 1, 1),
            )

    def test_record_rejects_blank_name(self):
        with pytest.raises(ValueError):
            SubscriptionRecord(
                name="   ",
                price=Decimal("1"),
                renewal_date=date(2024, 1, 1),
            )

    def test_record_accepts_zero_price(self):
        """Free trials are often stored at 0."""
        record = SubscriptionRecord(
            name="Trial",
            price=Decimal("0"),
            is_free_trial=True,
            renewal_date=date(2024, 1, 1),
        )
        assert record.price == Decimal("0")

    def test_record_is_immutable(self, make_record):
        record = make_record()
        with pytest.raises(ValueError):
            record.price = Decimal("1")

    def test_storage_dict_is_camel_case(self):
        """Test the persisted shape."""
        record = SubscriptionRecord(
            id="abc123",
            name="Netflix",
            price=Decimal("15.99"),
            currency=Currency.USD,
            frequency=Frequency.BI_WEEKLY,
            include_tax=True,
            renewal_date=date(2024, 2, 29),
        )
        data = record.to_storage_dict()

        assert data["id"] == "abc123"
        assert data["includeTax"] is True
        assert data["isFreeTrial"] is False
        assert data["isCancelled"] is False
        assert data["renewalDate"] == "2024-02-29"
        assert data["currency"] == "USD"
        assert data["frequency"] == "bi-weekly"
        assert data["iconUrl"] is None
        assert Decimal(data["price"]) == Decimal("15.99")

    def test_record_from_camel_case(self):
        record = SubscriptionRecord.model_validate({
            "id": "xyz",
            "name": "Crave",
            "price": "19.99",
            "currency": "CAD",
            "frequency": "yearly",
            "includeTax": False,
            "isFreeTrial": True,
            "isCancelled": True,
            "renewalDate": "2024-06-01",
            "iconUrl": "https://logo.clearbit.com/crave.com?size=64",
        })
        assert record.frequency == Frequency.YEARLY
        assert record.is_cancelled is True
        assert record.renewal_date == date(2024, 6, 1)

    def test_date_label(self, make_record):
        assert make_record().date_label == "Renews"
        assert make_record(is_cancelled=True).date_label == "Ends"

    def test_currency_symbol(self, make_record):
        assert make_record(currency=Currency.CAD).currency_symbol == "C$"
        assert make_record(currency=Currency.USD).currency_symbol == "$"
        assert make_record(currency=Currency.EUR).currency_symbol == "€"
        assert make_record(currency=Currency.GBP).currency_symbol == "£"


class TestDisplayRounding:
    """Tests for rounding exact amounts for display."""

    def test_rounds_to_cents(self):
        assert round_for_display(Fraction(10, 12)) == Decimal("0.83")

    def test_rounds_half_up(self):
        assert round_for_display(Fraction(1, 200)) == Decimal("0.01")
        assert round_for_display(Fraction(5, 8)) == Decimal("0.63")

    def test_whole_numbers_get_two_places(self):
        assert str(round_for_display(Fraction(113))) == "113.00"


class TestSpendSummary:
    """Tests for the aggregation result model."""

    def test_empty_summary(self):
        summary = SpendSummary()
        assert summary.is_empty
        assert summary.rounded() == {"total": {}, "active": {}, "cancelled": {}}

    def test_rounded_uses_currency_codes(self):
        summary = SpendSummary(
            total={Currency.USD: Fraction(10, 12)},
            active={Currency.USD: Fraction(10, 12)},
            record_count=1,
        )
        rounded = summary.rounded()
        assert rounded["total"] == {"USD": Decimal("0.83")}
        assert rounded["cancelled"] == {}
        assert not summary.is_empty


class TestValidationModels:
    """Tests for validation result models."""

    def test_validation_issue_severity(self):
        with pytest.raises(ValueError):
            ValidationIssue(
                field="name",
                issue_type="missing",
                message="Name is required",
                severity="fatal",
            )

    def test_validation_result_counts(self):
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(field="name", issue_type="missing", message="Name", severity="error"),
                ValidationIssue(field="price", issue_type="suspicious_value", message="High", severity="warning"),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1
        assert result.warnings == ["High"]


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_CREATED,
            description="Test event",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == AuditSeverity.INFO

    def test_subscription_created_event(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.subscription_created(
            subscription_id="abc",
            name="Netflix",
            price="15.99",
            currency="CAD",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.SUBSCRIPTION_CREATED
        assert event.entity_type == "subscription"
        assert event.entity_id == "abc"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True
        assert "Netflix" in event.description

    def test_totals_computed_is_debug(self):
        event = AuditEventBuilder.totals_computed(
            record_count=3,
            currencies=["CAD", "USD"],
            free_trial_count=1,
        )
        assert event.severity == AuditSeverity.DEBUG
        assert event.details["currencies"] == ["CAD", "USD"]

    def test_save_failed_is_error(self):
        event = AuditEventBuilder.save_failed(
            subscription_id="abc",
            error_message="disk full",
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "disk full"

    def test_audit_event_to_sheets_row(self):
        """Test converting audit event to sheets row."""
        event = AuditEventBuilder.subscription_deleted(subscription_id="abc")
        row = event.to_sheets_row()

        assert len(row) == 11
        assert row[2] == "subscription_deleted"
        assert row[5] == "abc"
        assert row[6] == ""
        assert row[8] == ""
        assert row[10] == "True"

    def test_audit_event_to_log_dict(self):
        event = AuditEventBuilder.renewal_rescheduled(
            subscription_id="abc",
            frequency="yearly",
            previous_date="2024-03-10",
            next_date="2025-03-10",
        )
        log = event.to_log_dict()
        assert log["event_type"] == "renewal_rescheduled"
        assert log["correlation_id"] is None
        assert log["details"]["next_date"] == "2025-03-10"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
