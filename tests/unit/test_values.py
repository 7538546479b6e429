"""
Tests for Money, ExchangeRateSet and ActivityWindow.

Covers:
- Decimal coercion (floats go through str)
- Currency-safe arithmetic
- Rate validation
- Activity window ordering and date parsing
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from billing_kernel.domain.values import (
    ActivityWindow,
    ExchangeRateSet,
    Money,
    to_date,
    to_decimal,
)
from billing_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidActivityWindowError,
    InvalidDateError,
    InvalidExchangeRateError,
)


class TestToDecimal:

    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_decimal_passthrough(self):
        value = Decimal("1.50")
        assert to_decimal(value) is value

    def test_invalid_amount(self):
        with pytest.raises(ValueError, match="Invalid amount"):
            to_decimal("abc")


class TestToDate:

    def test_iso_string(self):
        assert to_date("2025-06-05") == date(2025, 6, 5)

    def test_iso_datetime_string_drops_time(self):
        assert to_date("2025-06-05T10:30:00") == date(2025, 6, 5)

    def test_datetime_drops_time(self):
        assert to_date(datetime(2025, 6, 5, 23, 0)) == date(2025, 6, 5)

    def test_invalid_string(self):
        with pytest.raises(InvalidDateError):
            to_date("not a date")

    def test_invalid_type(self):
        with pytest.raises(InvalidDateError):
            to_date(20250605)


class TestMoney:
    """Money pairs a Decimal amount with its currency."""

    def test_of_normalizes_currency(self):
        money = Money.of("10.50", "euro")
        assert money.currency.code == "EUR"
        assert money.amount == Decimal("10.50")

    def test_float_amount_is_exact(self):
        assert Money.of(0.1, "EUR").amount == Decimal("0.1")

    def test_add_same_currency(self):
        assert Money.of("1", "DZD") + Money.of("2", "DZD") == Money.of("3", "DZD")

    def test_add_mixed_currency_raises(self):
        with pytest.raises(CurrencyMismatchError) as exc_info:
            Money.of("1", "EUR") + Money.of("1", "USD")
        assert exc_info.value.code == "CURRENCY_MISMATCH"

    def test_compare_mixed_currency_raises(self):
        with pytest.raises(CurrencyMismatchError):
            _ = Money.of("1", "EUR") < Money.of("1", "DZD")

    def test_multiply_by_ratio(self):
        assert (Money.of("1000", "EUR") * Decimal("0.5")).amount == Decimal("500.0")
        assert (Decimal("2") * Money.of("3", "AED")).amount == Decimal("6")

    def test_round(self):
        assert Money.of("10.005", "EUR").round().amount == Decimal("10.01")

    def test_zero(self):
        assert Money.zero("USD").is_zero
        assert not Money.zero("USD").is_negative
        assert (-Money.of("1", "USD")).is_negative

    def test_unsupported_currency(self):
        with pytest.raises(ValueError):
            Money.of("1", "GBP")

    def test_str(self):
        assert str(Money.of("12.5", "DZD")) == "12.5 DZD"


class TestExchangeRateSet:
    """Rates against the DZD pivot."""

    def test_defaults(self):
        rates = ExchangeRateSet.defaults()
        assert rates.eur_dzd == Decimal("140")
        assert rates.usd_dzd == Decimal("133")
        assert rates.aed_dzd == Decimal("36")

    def test_to_pivot(self):
        rates = ExchangeRateSet.of(eur_dzd="250.5")
        assert rates.to_pivot("EUR") == Decimal("250.5")
        assert rates.to_pivot("DZD") == Decimal("1")

    def test_strings_and_floats_coerced(self):
        rates = ExchangeRateSet.of(eur_dzd="141.25", usd_dzd=130.5)
        assert rates.eur_dzd == Decimal("141.25")
        assert rates.usd_dzd == Decimal("130.5")

    @pytest.mark.parametrize("bad", ["0", "-1", "NaN", "Infinity", "abc"])
    def test_invalid_rates_rejected(self, bad):
        with pytest.raises(InvalidExchangeRateError) as exc_info:
            ExchangeRateSet.of(eur_dzd=bad)
        assert exc_info.value.pair == "eur_dzd"

    def test_as_dict(self):
        assert ExchangeRateSet.defaults().as_dict() == {
            "eur_dzd": Decimal("140"),
            "usd_dzd": Decimal("133"),
            "aed_dzd": Decimal("36"),
        }

    def test_immutable(self):
        rates = ExchangeRateSet.defaults()
        with pytest.raises(AttributeError):
            rates.eur_dzd = Decimal("1")


class TestActivityWindow:

    def test_open_window(self):
        window = ActivityWindow.of("2025-06-05")
        assert window.start == date(2025, 6, 5)
        assert window.is_open

    def test_empty_end_means_open(self):
        assert ActivityWindow.of("2025-06-05", "").is_open

    def test_single_day_window(self):
        window = ActivityWindow.of(date(2025, 6, 5), date(2025, 6, 5))
        assert window.end == window.start

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidActivityWindowError) as exc_info:
            ActivityWindow.of("2025-06-05", "2025-06-01")
        assert exc_info.value.code == "INVALID_ACTIVITY_WINDOW"
