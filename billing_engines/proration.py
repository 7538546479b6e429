"""
Module: billing_engines.proration
Responsibility:
    Determine what fraction of the current billing period an activity
    window (an employee's rate assignment at a client, an employment span)
    was active, given the client's monthly anchor day.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import billing_kernel.domain and billing_kernel.exceptions.

Invariants enforced:
    - Purity: ``now`` is always a parameter; the wall clock is never read.
    - Ratios are Decimal and always within [0, 1].
    - An activity covering the whole period yields exactly Decimal(1),
      never a near-one quotient.
    - Degenerate overlaps yield 0, never an error.

Period rules:
    - ``period_end`` is the anchor day of the current month at
      23:59:59.999.  If that instant is not after today (midnight), it
      moves to the anchor day of the next month.  On the anchor day
      itself the period therefore still ends tonight.
    - ``period_start`` is the anchor day one month before ``period_end``,
      at 00:00:00.000.
    - Anchor days past the end of a short month fall on that month's
      last day (anchor 31 in June closes on June 30).

Failure modes:
    - InvalidAnchorDayError for anchor days outside 1..31.
    - InvalidActivityWindowError when the window ends before it starts.
    - InvalidDateError for unparsable dates.

Usage:
    from datetime import date
    from billing_engines.proration import prorate

    ratio = prorate(
        start=date(2025, 6, 5),
        anchor_day=25,
        end=None,
        now=date(2025, 6, 10),
    )  # ~0.656: June 5 00:00 .. June 25 23:59:59.999 over May 25 .. June 25
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum

from billing_engines.tracer import traced_engine
from billing_kernel.domain.values import ActivityWindow, to_date
from billing_kernel.exceptions import InvalidAnchorDayError
from billing_kernel.logging_config import get_logger

logger = get_logger("engines.proration")

# Ratios are computed at millisecond resolution
END_OF_DAY = time(23, 59, 59, 999000)
_ONE_MS = timedelta(milliseconds=1)

# Ratios below this are shown as prorated on client sheets
PRORATED_THRESHOLD = Decimal("0.999")

_ZERO = Decimal("0")
_ONE = Decimal("1")


class ProrationOutcome(str, Enum):
    """Which branch of the proration rules produced the ratio."""

    FULL_PERIOD = "full_period"
    PARTIAL = "partial"
    NOT_STARTED = "not_started"
    ENDED = "ended"
    EMPTY_OVERLAP = "empty_overlap"


@dataclass(frozen=True)
class BillingPeriod:
    """
    The rolling one-month window anchored on a billing day.

    Contract:
        Frozen value object; recomputed for every call, never persisted.
    Guarantees:
        - period_start < period_end
        - period_start is at midnight, period_end at 23:59:59.999
    """

    anchor_day: int
    period_start: datetime
    period_end: datetime

    @property
    def length_ms(self) -> int:
        """Length of the period in whole milliseconds."""
        return (self.period_end - self.period_start) // _ONE_MS

    def contains(self, instant: datetime) -> bool:
        return self.period_start <= instant <= self.period_end


@dataclass(frozen=True)
class ProrationResult:
    """
    Result of prorating one activity window.

    Attributes:
        ratio: Fraction of the period the activity was active, in [0, 1]
        period: The billing period the ratio refers to
        outcome: Which rule produced the ratio
        actual_start: Start of the overlap (None when there is none)
        actual_end: End of the overlap (None when there is none)
    """

    ratio: Decimal
    period: BillingPeriod
    outcome: ProrationOutcome
    actual_start: datetime | None = None
    actual_end: datetime | None = None

    @property
    def is_prorated(self) -> bool:
        """True when the amount shown should be flagged as a partial month."""
        return self.ratio < PRORATED_THRESHOLD


def validate_anchor_day(anchor_day: int) -> int:
    """Return ``anchor_day`` if it is an integer day-of-month in 1..31."""
    if isinstance(anchor_day, bool) or not isinstance(anchor_day, int):
        raise InvalidAnchorDayError(anchor_day)
    if not 1 <= anchor_day <= 31:
        raise InvalidAnchorDayError(anchor_day)
    return anchor_day


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move (year, month) by ``delta`` calendar months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def anchor_date(year: int, month: int, anchor_day: int) -> date:
    """The anchor day in the given month, clamped to the month's last day."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(anchor_day, last_day))


def _midnight(value: date | datetime | str) -> datetime:
    return datetime.combine(to_date(value), time.min)


def billing_period(anchor_day: int, now: date | datetime | str) -> BillingPeriod:
    """
    Compute the billing period straddling ``now``.

    Preconditions:
        - anchor_day in 1..31.
    Postconditions:
        - period_end is the first anchor-day instant (23:59:59.999) after
          midnight of ``now``; period_start is one month earlier at 00:00.
    Raises:
        InvalidAnchorDayError: If anchor_day is out of range.
    """
    validate_anchor_day(anchor_day)
    today = _midnight(now)

    period_end = datetime.combine(
        anchor_date(today.year, today.month, anchor_day), END_OF_DAY
    )
    if period_end <= today:
        year, month = shift_month(today.year, today.month, 1)
        period_end = datetime.combine(anchor_date(year, month, anchor_day), END_OF_DAY)

    year, month = shift_month(period_end.year, period_end.month, -1)
    period_start = datetime.combine(anchor_date(year, month, anchor_day), time.min)

    return BillingPeriod(
        anchor_day=anchor_day,
        period_start=period_start,
        period_end=period_end,
    )


def prorate_window(
    window: ActivityWindow,
    anchor_day: int,
    now: date | datetime | str,
) -> ProrationResult:
    """
    Prorate an activity window against the billing period around ``now``.

    Postconditions:
        - ratio is 0 if the window starts after the period, ended before
          it, or has no positive overlap with it.
        - ratio is exactly 1 if the window covers the whole period.
        - otherwise ratio = overlap_ms / period_ms, clamped to [0, 1].
    """
    period = billing_period(anchor_day, now)
    start = datetime.combine(window.start, time.min)

    if start > period.period_end:
        return _result(period, ProrationOutcome.NOT_STARTED, _ZERO)

    actual_start = max(start, period.period_start)
    actual_end = period.period_end

    end: datetime | None = None
    if window.end is not None:
        end = datetime.combine(window.end, END_OF_DAY)
        if end < period.period_start:
            return _result(period, ProrationOutcome.ENDED, _ZERO)
        actual_end = min(period.period_end, end)

    if actual_end <= actual_start:
        return _result(period, ProrationOutcome.EMPTY_OVERLAP, _ZERO)

    if start <= period.period_start and (end is None or end >= period.period_end):
        return _result(
            period, ProrationOutcome.FULL_PERIOD, _ONE, actual_start, actual_end
        )

    total_ms = period.length_ms
    if total_ms <= 0:
        return _result(period, ProrationOutcome.EMPTY_OVERLAP, _ZERO)

    worked_ms = (actual_end - actual_start) // _ONE_MS
    ratio = min(_ONE, max(_ZERO, Decimal(worked_ms) / Decimal(total_ms)))
    return _result(period, ProrationOutcome.PARTIAL, ratio, actual_start, actual_end)


def _result(
    period: BillingPeriod,
    outcome: ProrationOutcome,
    ratio: Decimal,
    actual_start: datetime | None = None,
    actual_end: datetime | None = None,
) -> ProrationResult:
    logger.debug("proration_calculated", extra={
        "anchor_day": period.anchor_day,
        "period_start": period.period_start.isoformat(),
        "period_end": period.period_end.isoformat(),
        "outcome": outcome.value,
        "ratio": str(ratio),
    })
    return ProrationResult(
        ratio=ratio,
        period=period,
        outcome=outcome,
        actual_start=actual_start,
        actual_end=actual_end,
    )


@traced_engine("proration", "1.0", fingerprint_fields=("start", "anchor_day", "end", "now"))
def prorate(
    start: date | datetime | str,
    anchor_day: int,
    end: date | datetime | str | None,
    now: date | datetime | str,
) -> Decimal:
    """
    Fraction (0..1) of the current billing period the activity was active.

    Args:
        start: First active day of the assignment
        anchor_day: Client payment day-of-month (1..31)
        end: Last active day, or None while still active
        now: Evaluation instant; only its calendar date matters

    Returns:
        Decimal ratio in [0, 1]
    """
    window = ActivityWindow.of(start, end)
    return prorate_window(window, anchor_day, now).ratio
