"""Tests for boundary validation of records and form drafts."""

import pytest
from datetime import date
from decimal import Decimal

from subtrack.forms.draft import SubscriptionDraft
from subtrack.models.subscription import Currency, Frequency, SubscriptionRecord
from subtrack.validation import (
    RecordValidationError,
    SubscriptionValidator,
    check_record,
    parse_price_text,
    parse_record,
)


class TestParseRecord:
    """Hard validation of the persisted shape."""

    def test_camel_case_keys(self):
        record = parse_record({
            "id": "a1",
            "name": "Disney Plus",
            "price": "13.99",
            "currency": "USD",
            "frequency": "monthly",
            "isCancelled": True,
            "renewalDate": "2024-05-01",
        })
        assert record.currency == Currency.USD
        assert record.is_cancelled is True

    def test_snake_case_keys(self):
        record = parse_record({
            "name": "Disney Plus",
            "price": Decimal("13.99"),
            "currency": Currency.EUR,
            "frequency": Frequency.QUARTERLY,
            "is_free_trial": True,
            "renewal_date": date(2024, 5, 1),
        })
        assert record.frequency == Frequency.QUARTERLY
        assert record.is_free_trial is True

    def test_record_instance_passes_through(self, make_record):
        record = make_record()
        assert parse_record(record) is record

    def test_unknown_currency(self):
        with pytest.raises(RecordValidationError) as exc_info:
            parse_record({
                "name": "Test",
                "price": "1",
                "currency": "BTC",
                "renewalDate": "2024-01-01",
            })
        issue = exc_info.value.issues[0]
        assert issue.field == "currency"
        assert issue.issue_type == "unknown_currency"
        assert issue.suggested_fix == "Use one of CAD, USD, EUR, GBP"

    def test_unknown_frequency(self):
        with pytest.raises(RecordValidationError) as exc_info:
            parse_record({
                "name": "Test",
                "price": "1",
                "frequency": "daily",
                "renewalDate": "2024-01-01",
            })
        assert exc_info.value.issues[0].issue_type == "unknown_frequency"

    def test_non_string_frequency(self):
        with pytest.raises(RecordValidationError) as exc_info:
            parse_record({
                "name": "Test",
                "price": "1",
                "frequency": {"every": "month"},
                "renewalDate": "2024-01-01",
            })
        assert exc_info.value.issues[0].issue_type == "unknown_frequency"

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse_record({"name": "Test", "price": "-1", "renewalDate": "2024-01-01"})

    def test_missing_name(self):
        with pytest.raises(RecordValidationError) as exc_info:
            parse_record({"price": "1", "renewalDate": "2024-01-01"})
        assert exc_info.value.issues[0].field == "name"

    def test_malformed_date(self):
        with pytest.raises(RecordValidationError) as exc_info:
            parse_record({"name": "Test", "price": "1", "renewalDate": "not-a-date"})
        assert exc_info.value.issues[0].field == "renewalDate"

    def test_nan_price(self):
        with pytest.raises(RecordValidationError):
            parse_record({"name": "Test", "price": "NaN", "renewalDate": "2024-01-01"})

    def test_issue_dicts(self):
        with pytest.raises(RecordValidationError) as exc_info:
            parse_record({"name": "Test", "price": "1", "currency": "BTC", "renewalDate": "2024-01-01"})
        dicts = exc_info.value.issue_dicts()
        assert dicts[0]["field"] == "currency"
        assert dicts[0]["severity"] == "error"


class TestCheckRecord:
    """Re-checking records that skipped pydantic validation."""

    def test_valid_record(self, make_record):
        record = make_record()
        assert check_record(record) is record

    def test_unknown_currency_string(self):
        record = SubscriptionRecord.model_construct(
            name="Test",
            price=Decimal("1"),
            currency="JPY",
            renewal_date=date(2024, 1, 1),
        )
        with pytest.raises(RecordValidationError) as exc_info:
            check_record(record)
        assert exc_info.value.issues[0].issue_type == "unknown_currency"

    def test_negative_price(self):
        record = SubscriptionRecord.model_construct(
            name="Test",
            price=Decimal("-0.01"),
            renewal_date=date(2024, 1, 1),
        )
        with pytest.raises(RecordValidationError):
            check_record(record)


class TestParsePriceText:

    def test_plain_number(self):
        assert parse_price_text("9.99") == Decimal("9.99")

    def test_surrounding_whitespace(self):
        assert parse_price_text("  12 ") == Decimal("12")

    def test_unparseable_is_zero(self):
        assert parse_price_text("") == Decimal("0")
        assert parse_price_text(".") == Decimal("0")
        assert parse_price_text("abc") == Decimal("0")

    def test_non_finite_is_zero(self):
        assert parse_price_text("NaN") == Decimal("0")
        assert parse_price_text("Infinity") == Decimal("0")


def _draft(**overrides) -> SubscriptionDraft:
    fields = {
        "name": "Netflix",
        "price_text": "15.99",
        "renewal_date": date(2024, 2, 1),
        "today": date(2024, 1, 15),
    }
    fields.update(overrides)
    return SubscriptionDraft(**fields)


class TestSubscriptionValidator:
    """Soft validation of the form."""

    def test_valid_draft(self):
        validator = SubscriptionValidator(max_reasonable_price=Decimal("1000"))
        result = validator.validate_draft(_draft())
        assert result.is_valid
        assert result.issues == []
        assert validator.get_user_friendly_summary(result) == "✅ Looks good!"

    def test_missing_name_is_an_error(self):
        validator = SubscriptionValidator(max_reasonable_price=Decimal("1000"))
        result = validator.validate_draft(_draft(name="  "))
        assert not result.is_valid
        assert result.issues[0].field == "name"
        assert "Please fix" in validator.get_user_friendly_summary(result)

    def test_high_price_is_a_warning(self):
        validator = SubscriptionValidator(max_reasonable_price=Decimal("100"))
        result = validator.validate_draft(_draft(price_text="250"))
        assert result.is_valid
        assert result.warnings == ["Price (C$250.00) seems unusually high"]

    def test_unparseable_price_is_a_warning(self):
        validator = SubscriptionValidator(max_reasonable_price=Decimal("100"))
        result = validator.validate_draft(_draft(price_text="."))
        assert result.is_valid
        assert result.issues[0].issue_type == "unparseable"

    def test_empty_price_is_fine(self):
        validator = SubscriptionValidator(max_reasonable_price=Decimal("100"))
        assert validator.validate_draft(_draft(price_text="")).issues == []

    def test_past_renewal_date_is_a_warning(self):
        validator = SubscriptionValidator(max_reasonable_price=Decimal("100"))
        result = validator.validate_draft(_draft(renewal_date=date(2024, 1, 1)))
        assert result.is_valid
        assert result.issues[0].issue_type == "past_date"

    def test_cancelled_subscription_may_end_in_the_past(self):
        validator = SubscriptionValidator(max_reasonable_price=Decimal("100"))
        result = validator.validate_draft(
            _draft(renewal_date=date(2024, 1, 1), is_cancelled=True)
        )
        assert result.issues == []

    def test_limit_comes_from_settings(self, monkeypatch):
        monkeypatch.setenv("SUBTRACK_MAX_REASONABLE_PRICE", "50")
        validator = SubscriptionValidator()
        result = validator.validate_draft(_draft(price_text="60"))
        assert result.issues[0].issue_type == "suspicious_value"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
