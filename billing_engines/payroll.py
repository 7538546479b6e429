"""
Module: billing_engines.payroll
Responsibility:
    Compute the fraction of the current payroll period an employee has
    worked, given only a hire date and the tenant's payroll calendar.
    Payroll proration prorates entry only, never exit.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Payroll calendar:
    Regime A (standard)
        Salaries are paid on the 25th.  The period ends on the 25th of
        the current month, or of the next month once the 25th has passed
        (on the 25th itself the period still ends that day).

    Regime B (transition) -- tenants listed in PAYROLL_CALENDAR_RULES only
        While moving the payment day from the 25th to the 5th, the period
        between the last day-25 payment (2025-12-25) and 2026-02-01 is
        paid as one block, over a fixed 30-day denominator.  Applies from
        2025-12-25 until the first day-5 payment on 2026-02-05.

    Regime C (post-transition) -- same tenants, from 2026-02-05
        Salaries are paid on the 5th; the period rolls over on the 5th
        itself.

    The dated rules are literal business decisions, kept as a table
    rather than derived from a formula.

Invariants enforced:
    - Purity: ``now`` is always a parameter.
    - Day counts are ceil(milliseconds / one day), so a hire time of day
      still counts its whole day.
    - Hired on or after the period end yields 0; hired on or before the
      last payment date yields worked_days == total_days.

Usage:
    from datetime import date
    from billing_engines.payroll import payroll_ratio

    ratio = payroll_ratio(
        hire_date=date(2025, 6, 1),
        tenant_slug="acme",
        now=date(2025, 6, 10),
    )  # 24 / 31 over May 25 .. June 25
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum

from billing_engines.proration import anchor_date, shift_month
from billing_engines.tracer import traced_engine
from billing_kernel.domain.values import to_date
from billing_kernel.logging_config import get_logger

logger = get_logger("engines.payroll")

STANDARD_PAYMENT_DAY = 25

_ONE_DAY = timedelta(days=1)


class PayrollRegime(str, Enum):
    """Payroll calendar in force for a tenant on a given day."""

    STANDARD = "STANDARD"
    TRANSITION = "TRANSITION"
    POST_TRANSITION = "POST_TRANSITION"


@dataclass(frozen=True)
class PayrollCalendarRule:
    """
    A dated change of payment day for a set of tenants.

    Attributes:
        tenant_slugs: Tenants the rule applies to
        transition_from: First day the transition period is in force
        transition_until: First day of the new convention (exclusive end
            of the transition)
        transition_last_payment: Last payment under the old convention
        transition_period_end: Fixed end of the transition period
        transition_payment_day: Day shown as payment day during transition
        transition_denominator_days: Fixed day count used as denominator
        new_payment_day: Payment day after the transition
    """

    tenant_slugs: frozenset[str]
    transition_from: date
    transition_until: date
    transition_last_payment: date
    transition_period_end: date
    transition_payment_day: int
    transition_denominator_days: int
    new_payment_day: int

    def applies_to(self, tenant_slug: str | None) -> bool:
        return tenant_slug is not None and tenant_slug in self.tenant_slugs


PAYROLL_CALENDAR_RULES: tuple[PayrollCalendarRule, ...] = (
    PayrollCalendarRule(
        tenant_slugs=frozenset({"deep-closer", "ompleo"}),
        transition_from=date(2025, 12, 25),
        transition_until=date(2026, 2, 5),
        transition_last_payment=date(2025, 12, 25),
        transition_period_end=date(2026, 2, 1),
        transition_payment_day=1,
        transition_denominator_days=30,
        new_payment_day=5,
    ),
)


@dataclass(frozen=True)
class PayrollPeriod:
    """
    The payroll period in force for a tenant on a given day.

    Attributes:
        regime: Which calendar produced the period
        last_payment_date: Start of the period (previous payment date)
        period_end: End of the period (next payment date)
        payment_day: Day-of-month shown as the payment day
        fixed_denominator_days: Day count overriding the period length
            (transition only)
    """

    regime: PayrollRegime
    last_payment_date: date
    period_end: date
    payment_day: int
    fixed_denominator_days: int | None = None

    @property
    def total_days(self) -> int:
        return _ceil_days(_midnight(self.period_end) - _midnight(self.last_payment_date))


@dataclass(frozen=True)
class PayrollProration:
    """
    Result of prorating one employee's pay.

    Attributes:
        ratio: worked_days / denominator_days (0 if hired after the period)
        period: The payroll period used
        worked_days: Days counted for the employee
        denominator_days: Days the ratio is taken over
    """

    ratio: Decimal
    period: PayrollPeriod
    worked_days: int
    denominator_days: int

    @property
    def is_full_period(self) -> bool:
        return self.ratio >= Decimal("1")


def _midnight(value: date) -> datetime:
    return datetime.combine(value, time.min)


def _ceil_days(delta: timedelta) -> int:
    return math.ceil(delta / _ONE_DAY)


def _hire_instant(hire_date: date | datetime | str) -> datetime:
    # Aware timestamps are read at their own wall-clock time, like to_date()
    if isinstance(hire_date, datetime):
        return hire_date.replace(tzinfo=None)
    return _midnight(to_date(hire_date))


def _rule_for(tenant_slug: str | None) -> PayrollCalendarRule | None:
    for rule in PAYROLL_CALENDAR_RULES:
        if rule.applies_to(tenant_slug):
            return rule
    return None


def _next_payment_date(today: date, payment_day: int, roll_on_payment_day: bool) -> date:
    """Next payment date on ``payment_day``, rolling to next month once passed."""
    passed = today.day >= payment_day if roll_on_payment_day else today.day > payment_day
    year, month = today.year, today.month
    if passed:
        year, month = shift_month(year, month, 1)
    return anchor_date(year, month, payment_day)


def _anchored_period(
    today: date,
    regime: PayrollRegime,
    payment_day: int,
    roll_on_payment_day: bool,
) -> PayrollPeriod:
    period_end = _next_payment_date(today, payment_day, roll_on_payment_day)
    year, month = shift_month(period_end.year, period_end.month, -1)
    return PayrollPeriod(
        regime=regime,
        last_payment_date=anchor_date(year, month, payment_day),
        period_end=period_end,
        payment_day=payment_day,
    )


def payroll_period(tenant_slug: str | None, now: date | datetime | str) -> PayrollPeriod:
    """
    The payroll period in force for ``tenant_slug`` on the day of ``now``.

    Tenants without a calendar rule always use the standard day-25 period.
    """
    today = to_date(now)
    rule = _rule_for(tenant_slug)

    if rule is not None and rule.transition_from <= today < rule.transition_until:
        return PayrollPeriod(
            regime=PayrollRegime.TRANSITION,
            last_payment_date=rule.transition_last_payment,
            period_end=rule.transition_period_end,
            payment_day=rule.transition_payment_day,
            fixed_denominator_days=rule.transition_denominator_days,
        )

    if rule is not None and today >= rule.transition_until:
        return _anchored_period(
            today, PayrollRegime.POST_TRANSITION, rule.new_payment_day, True
        )

    return _anchored_period(today, PayrollRegime.STANDARD, STANDARD_PAYMENT_DAY, False)


def prorate_payroll(
    hire_date: date | datetime | str,
    tenant_slug: str | None,
    now: date | datetime | str,
) -> PayrollProration:
    """
    Prorate an employee's pay for the payroll period around ``now``.

    Postconditions:
        - hire on/after period_end -> ratio 0
        - hire on/before last_payment_date -> worked_days == total_days
        - otherwise worked_days = ceil days from hire to period_end
        - ratio = worked_days / total_days, or / 30 during the transition

    Note:
        The transition denominator is fixed, so an employee present for
        the whole 38-day transition block gets 38/30 of a month.
    """
    period = payroll_period(tenant_slug, now)
    hire = _hire_instant(hire_date)
    period_end = _midnight(period.period_end)
    last_payment = _midnight(period.last_payment_date)

    total_days = period.total_days
    denominator = period.fixed_denominator_days or total_days

    if hire >= period_end:
        worked_days = 0
        ratio = Decimal("0")
    else:
        worked_days = total_days if hire <= last_payment else _ceil_days(period_end - hire)
        ratio = Decimal(worked_days) / Decimal(denominator) if denominator > 0 else Decimal("0")

    logger.debug("payroll_proration_calculated", extra={
        "tenant_slug": tenant_slug,
        "regime": period.regime.value,
        "hire_date": hire.isoformat(),
        "last_payment_date": period.last_payment_date.isoformat(),
        "period_end": period.period_end.isoformat(),
        "worked_days": worked_days,
        "denominator_days": denominator,
        "ratio": str(ratio),
    })

    return PayrollProration(
        ratio=ratio,
        period=period,
        worked_days=worked_days,
        denominator_days=denominator,
    )


@traced_engine("payroll", "1.0", fingerprint_fields=("hire_date", "tenant_slug", "now"))
def payroll_ratio(
    hire_date: date | datetime | str,
    tenant_slug: str | None,
    now: date | datetime | str,
) -> Decimal:
    """Fraction of the payroll period worked; see ``prorate_payroll``."""
    return prorate_payroll(hire_date, tenant_slug, now).ratio


def payroll_remark(
    hire_date: date | datetime | str,
    tenant_slug: str | None,
    now: date | datetime | str,
) -> str:
    """
    Salary-sheet note explaining a partial month.

    Returns an empty string for a full (or better) period, otherwise
    ``"Prorata de <hire> jusqu'à <payment date>"`` with dd/mm/yyyy dates.
    """
    return remark_for(hire_date, prorate_payroll(hire_date, tenant_slug, now))


def remark_for(hire_date: date | datetime | str, result: PayrollProration) -> str:
    """Sheet note for an already computed proration."""
    if result.is_full_period:
        return ""
    hire = _hire_instant(hire_date)
    period_end = result.period.period_end
    payment = f"{result.period.payment_day:02d}/{period_end.month:02d}/{period_end.year}"
    return f"Prorata de {hire.strftime('%d/%m/%Y')} jusqu'à {payment}"
