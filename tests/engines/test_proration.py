"""
Tests for the billing period proration engine.

Covers:
- Billing period computation (anchor-day tie, short-month clamping,
  year rollover)
- Full-period, not-started, ended and partial ratios
- Reference scenarios for anchor day 25 as of 2025-06-10
- Input validation
"""

from datetime import date, datetime, time
from decimal import Decimal

import pytest

from billing_engines.proration import (
    END_OF_DAY,
    ProrationOutcome,
    anchor_date,
    billing_period,
    prorate,
    prorate_window,
    shift_month,
)
from billing_kernel.domain.values import ActivityWindow
from billing_kernel.exceptions import InvalidAnchorDayError

NOW = date(2025, 6, 10)

# May 25 00:00 .. June 25 23:59:59.999, in milliseconds
PERIOD_MS = 32 * 86_400_000 - 1


class TestBillingPeriod:
    """Tests for the period straddling ``now``."""

    def test_period_around_reference_date(self):
        period = billing_period(25, NOW)

        assert period.period_start == datetime(2025, 5, 25, 0, 0, 0)
        assert period.period_end == datetime.combine(date(2025, 6, 25), END_OF_DAY)
        assert period.length_ms == PERIOD_MS

    def test_anchor_day_itself_keeps_current_period(self):
        """On the anchor day the period still ends that evening."""
        period = billing_period(25, date(2025, 6, 25))

        assert period.period_start == datetime(2025, 5, 25)
        assert period.period_end.date() == date(2025, 6, 25)

    def test_day_after_anchor_rolls_over(self):
        period = billing_period(25, date(2025, 6, 26))

        assert period.period_start == datetime(2025, 6, 25)
        assert period.period_end.date() == date(2025, 7, 25)

    def test_time_of_day_is_ignored(self):
        assert billing_period(25, datetime(2025, 6, 25, 23, 59)) == billing_period(
            25, date(2025, 6, 25)
        )

    def test_anchor_31_clamped_in_short_month(self):
        period = billing_period(31, date(2025, 6, 10))

        assert period.period_start == datetime(2025, 5, 31)
        assert period.period_end.date() == date(2025, 6, 30)

    def test_anchor_31_in_february(self):
        period = billing_period(31, date(2025, 2, 10))

        assert period.period_start == datetime(2025, 1, 31)
        assert period.period_end.date() == date(2025, 2, 28)

    def test_anchor_30_in_leap_february(self):
        period = billing_period(30, date(2024, 2, 29))

        assert period.period_end.date() == date(2024, 2, 29)
        assert period.period_start == datetime(2024, 1, 30)

    def test_year_rollover(self):
        period = billing_period(25, date(2025, 12, 28))

        assert period.period_start == datetime(2025, 12, 25)
        assert period.period_end.date() == date(2026, 1, 25)

    def test_iso_string_now(self):
        assert billing_period(25, "2025-06-10") == billing_period(25, NOW)

    def test_contains(self):
        period = billing_period(25, NOW)

        assert period.contains(datetime(2025, 6, 1))
        assert not period.contains(datetime(2025, 6, 26))


class TestCalendarHelpers:

    def test_shift_month_forward_over_year(self):
        assert shift_month(2025, 12, 1) == (2026, 1)

    def test_shift_month_backward_over_year(self):
        assert shift_month(2025, 1, -1) == (2024, 12)

    def test_anchor_date_clamps(self):
        assert anchor_date(2025, 4, 31) == date(2025, 4, 30)
        assert anchor_date(2025, 4, 15) == date(2025, 4, 15)


class TestReferenceScenarios:
    """Anchor day 25 evaluated on 2025-06-10."""

    def test_started_before_period_is_full(self):
        """Start 2025-05-01, still active: exactly one."""
        ratio = prorate(start=date(2025, 5, 1), anchor_day=25, end=None, now=NOW)

        assert ratio == Decimal("1")

    def test_started_mid_period(self):
        """Start 2025-06-05: June 5 00:00 through June 25 23:59:59.999."""
        ratio = prorate(start=date(2025, 6, 5), anchor_day=25, end=None, now=NOW)

        worked_ms = 21 * 86_400_000 - 1
        assert ratio == Decimal(worked_ms) / Decimal(PERIOD_MS)
        assert abs(ratio - Decimal("0.65625")) < Decimal("0.000001")

    def test_ended_before_period(self):
        """Window 2025-01-01 .. 2025-05-01 ended before May 25."""
        ratio = prorate(
            start=date(2025, 1, 1), anchor_day=25, end=date(2025, 5, 1), now=NOW
        )

        assert ratio == Decimal("0")


class TestProrationOutcomes:
    """Branches of the proration rules."""

    def test_full_period_with_end_after_period(self):
        result = prorate_window(
            ActivityWindow.of(date(2025, 1, 1), date(2025, 7, 1)), 25, NOW
        )

        assert result.outcome == ProrationOutcome.FULL_PERIOD
        assert result.ratio == Decimal("1")
        assert not result.is_prorated

    def test_full_period_when_end_is_period_end_day(self):
        ratio = prorate("2025-05-25", 25, "2025-06-25", NOW)

        assert ratio == Decimal("1")

    def test_starts_after_period_end(self):
        result = prorate_window(ActivityWindow.of(date(2025, 6, 26)), 25, NOW)

        assert result.outcome == ProrationOutcome.NOT_STARTED
        assert result.ratio == Decimal("0")
        assert result.actual_start is None

    def test_starts_on_period_end_day(self):
        """The last day of the period still counts as one day."""
        ratio = prorate(date(2025, 6, 25), 25, None, NOW)

        assert ratio == Decimal(86_400_000 - 1) / Decimal(PERIOD_MS)

    def test_ended_day_before_period(self):
        result = prorate_window(
            ActivityWindow.of(date(2025, 5, 1), date(2025, 5, 24)), 25, NOW
        )

        assert result.outcome == ProrationOutcome.ENDED
        assert result.ratio == Decimal("0")

    def test_ended_on_period_start_day(self):
        """Ending on the anchor day covers that whole day."""
        result = prorate_window(
            ActivityWindow.of(date(2025, 5, 1), date(2025, 5, 25)), 25, NOW
        )

        assert result.outcome == ProrationOutcome.PARTIAL
        assert result.ratio == Decimal(86_400_000 - 1) / Decimal(PERIOD_MS)
        assert result.actual_start == datetime(2025, 5, 25)
        assert result.actual_end == datetime.combine(date(2025, 5, 25), END_OF_DAY)

    def test_window_inside_period(self):
        result = prorate_window(
            ActivityWindow.of(date(2025, 6, 1), date(2025, 6, 10)), 25, NOW
        )

        assert result.outcome == ProrationOutcome.PARTIAL
        assert result.ratio == Decimal(10 * 86_400_000 - 1) / Decimal(PERIOD_MS)
        assert result.is_prorated

    def test_result_carries_period(self):
        result = prorate_window(ActivityWindow.of(date(2025, 6, 1)), 25, NOW)

        assert result.period == billing_period(25, NOW)
        assert result.actual_end == result.period.period_end

    def test_datetime_start_counts_from_midnight(self):
        assert prorate(datetime(2025, 6, 5, 17, 30), 25, None, NOW) == prorate(
            date(2025, 6, 5), 25, None, NOW
        )


class TestValidation:

    @pytest.mark.parametrize("anchor_day", [0, 32, -1, True, 1.5, "25"])
    def test_invalid_anchor_day(self, anchor_day):
        with pytest.raises(InvalidAnchorDayError) as exc_info:
            prorate(date(2025, 6, 1), anchor_day, None, NOW)
        assert exc_info.value.code == "INVALID_ANCHOR_DAY"

    @pytest.mark.parametrize("anchor_day", [1, 28, 31])
    def test_boundary_anchor_days_accepted(self, anchor_day):
        ratio = prorate(date(2020, 1, 1), anchor_day, None, NOW)

        assert ratio == Decimal("1")


class TestTracing:

    def test_emits_engine_trace(self, captured_logs):
        prorate(date(2025, 6, 5), 25, None, NOW)

        traces = [r for r in captured_logs() if r["message"] == "BILLING_ENGINE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "proration"
        assert len(traces[0]["input_fingerprint"]) == 16

    def test_debug_event_logged(self, captured_logs):
        prorate(date(2025, 6, 5), 25, None, NOW)

        events = [r for r in captured_logs() if r["message"] == "proration_calculated"]
        assert events[0]["outcome"] == "partial"
        assert events[0]["anchor_day"] == 25
