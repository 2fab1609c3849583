"""Unit tests for domain value objects."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from rentals.domain.exceptions import InvalidRangeError, ValidationError
from rentals.domain.model.value_objects import DateRange, Money, Quantity


def _at(day: int, hour: int = 0, month: int = 1) -> datetime:
    return datetime(2024, month, day, hour, tzinfo=timezone.utc)


# ── Money ────────────────────────────────────────────────────────────────────


class TestMoney:

    def test_creation(self):
        m = Money(Decimal("10.50"))
        assert m.amount == Decimal("10.50")
        assert m.currency == "USD"

    def test_of_factory_from_string(self):
        assert Money.of("25.99").amount == Decimal("25.99")

    def test_of_factory_rejects_garbage(self):
        with pytest.raises(ValidationError, match="Invalid money amount"):
            Money.of("ten dollars")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            Money(Decimal("-1"))

    def test_addition(self):
        assert Money.of("10") + Money.of("5.50") == Money.of("15.50")

    def test_multiplication_by_int(self):
        assert Money.of("7.50") * 3 == Money.of("22.50")

    def test_multiplication_by_float_rejected(self):
        with pytest.raises(TypeError):
            Money.of("7.50") * 1.5

    def test_scaled_rounds_half_up_to_cents(self):
        assert Money.of("10.05").scaled(Decimal("0.5")) == Money.of("5.03")
        assert Money.of("100").scaled(Decimal("0.30")) == Money.of("30.00")

    def test_currency_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="Cannot combine"):
            Money(Decimal("10"), "USD") + Money(Decimal("5"), "EUR")

    def test_str_formatting(self):
        assert str(Money.of("15")) == "$15.00"
        assert str(Money.of("9.5")) == "$9.50"

    def test_zero(self):
        assert Money.zero().is_zero
        assert not Money.of("0.01").is_zero

    def test_comparison_operators(self):
        assert Money.of("5") < Money.of("10")
        assert Money.of("10") > Money.of("5")
        assert Money.of("10") >= Money.of("10")
        assert Money.of("10") <= Money.of("10")


# ── Quantity ─────────────────────────────────────────────────────────────────


class TestQuantity:

    def test_valid_quantity(self):
        assert Quantity(5).value == 5

    def test_zero_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(0)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(-3)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            Quantity(True)

    def test_str(self):
        assert str(Quantity(7)) == "7"


# ── DateRange ────────────────────────────────────────────────────────────────


class TestDateRange:

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidRangeError, match="must be after"):
            DateRange(_at(5), _at(4))

    def test_empty_range_rejected(self):
        with pytest.raises(InvalidRangeError):
            DateRange(_at(5), _at(5))

    def test_invalid_range_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            DateRange(_at(5), _at(1))

    def test_naive_datetimes_read_as_utc(self):
        period = DateRange(datetime(2024, 1, 2), datetime(2024, 1, 5))
        assert period.start.tzinfo is timezone.utc
        assert period.overlaps(DateRange(_at(4), _at(6)))

    def test_aware_datetimes_kept(self):
        assert DateRange(_at(2), _at(5)).start == _at(2)

    def test_back_to_back_windows_do_not_overlap(self):
        first = DateRange(_at(1), _at(4))
        second = DateRange(_at(4), _at(8))
        assert not first.overlaps(second)
        assert not second.overlaps(first)

    def test_one_hour_shared_is_an_overlap(self):
        first = DateRange(_at(1), _at(4, hour=1))
        second = DateRange(_at(4), _at(8))
        assert first.overlaps(second)

    def test_containing_window_overlaps(self):
        assert DateRange(_at(1), _at(10)).overlaps(DateRange(_at(3), _at(4)))

    def test_days_lists_every_touched_calendar_day(self):
        window = DateRange(_at(1, hour=10), _at(3, hour=9))
        assert window.days() == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]

    def test_days_excludes_the_exclusive_end_day(self):
        assert DateRange(_at(1), _at(3)).days() == [date(2024, 1, 1), date(2024, 1, 2)]

    def test_touches_day(self):
        window = DateRange(_at(1, hour=12), _at(2, hour=6))
        assert window.touches_day(date(2024, 1, 1))
        assert window.touches_day(date(2024, 1, 2))
        assert not window.touches_day(date(2024, 1, 3))

    def test_billable_days_rounds_started_days_up(self):
        assert DateRange(_at(1), _at(4)).billable_days == 3
        assert DateRange(_at(1), _at(4, hour=1)).billable_days == 4
        assert DateRange(_at(1), _at(1, hour=5)).billable_days == 1

    def test_with_end(self):
        window = DateRange(_at(1), _at(4)).with_end(_at(6))
        assert window.end == _at(6)
        assert window.start == _at(1)
