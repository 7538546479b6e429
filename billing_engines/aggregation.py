"""
Module: billing_engines.aggregation
Responsibility:
    Compose billing proration, payroll proration and currency conversion
    into the figures shown on the tenant dashboards: client revenue
    (period-actual, nominal, paid), the payroll sheet, the tenant
    dashboard summary and the multi-tenant summary.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Callers load records and pass them in; nothing here reads storage or
    the wall clock.

Invariants enforced:
    - Every amount is converted into the target currency before it is
      added; Money refuses to sum mixed currencies.
    - A client without an anchor day is billed the full monthly rate.
    - Payroll figures are computed in DZD and only converted for display.
    - Management fees = prorated salaries + professional expenses.

Failure modes:
    - CurrencyMismatchError if a caller bypasses conversion.
    - UnknownCurrencyError for unknown codes when ``strict`` is set.

Usage:
    from billing_engines.aggregation import dashboard_summary

    summary = dashboard_summary(ledger, rates, now, "EUR")
    summary.net_profit      # Money in EUR
    summary.margin_pct      # Decimal percentage
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from billing_engines.conversion import convert_money, normalize_currency_code
from billing_engines.payroll import PayrollProration, prorate_payroll, remark_for
from billing_engines.proration import prorate_window, validate_anchor_day
from billing_kernel.domain.currency import CurrencyRegistry
from billing_kernel.domain.values import ActivityWindow, ExchangeRateSet, Money, to_date
from billing_kernel.logging_config import get_logger

logger = get_logger("engines.aggregation")

_ZERO = Decimal("0")
_ONE = Decimal("1")
_HUNDRED = Decimal("100")

PIVOT = CurrencyRegistry.PIVOT


# =============================================================================
# Inputs
# =============================================================================


class ExpenseKind(str, Enum):
    """Expense category as recorded by the tenants."""

    PROFESSIONAL = "Professionnel"
    PERSONAL = "Personnel"


@dataclass(frozen=True)
class Client:
    """
    A billed client.

    Attributes:
        client_id: Identifier
        anchor_day: Payment day-of-month; None (or 0) when billed without
            proration
        currency: Billing currency code (may be a legacy spelling)
        is_paid: Whether the current period has been paid
        name: Display name
    """

    client_id: str
    anchor_day: int | None = None
    currency: str | None = None
    is_paid: bool = False
    name: str = ""

    def __post_init__(self) -> None:
        # Records store an unset payment day as 0
        if self.anchor_day == 0:
            object.__setattr__(self, "anchor_day", None)
        elif self.anchor_day is not None:
            validate_anchor_day(self.anchor_day)


@dataclass(frozen=True)
class RateAssignment:
    """An employee placed at a client for a monthly rate over a window."""

    employee_id: str
    client_id: str
    monthly_rate: Money
    window: ActivityWindow


@dataclass(frozen=True)
class ClientCost:
    """A fixed monthly cost re-billed to a client."""

    client_id: str
    price: Money
    label: str = ""


@dataclass(frozen=True)
class Expense:
    amount: Money
    kind: ExpenseKind
    name: str = ""


@dataclass(frozen=True)
class EmployeePay:
    """
    Monthly pay components of one employee.

    Attributes:
        employee_id: Identifier
        hire_date: First day of employment
        monthly_salary: Full monthly salary
        declared_salary: Part paid by bank transfer
        recharge: Phone/transport allowance
        monthly_bonus: Recurring bonus
        is_active: Only active employees appear on the payroll
        name: Display name
    """

    employee_id: str
    hire_date: date
    monthly_salary: Money
    declared_salary: Money
    recharge: Money
    monthly_bonus: Money
    is_active: bool = True
    name: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.hire_date, datetime):
            object.__setattr__(self, "hire_date", to_date(self.hire_date))


@dataclass(frozen=True)
class TenantLedger:
    """Everything the dashboard needs for one tenant."""

    slug: str
    clients: tuple[Client, ...] = ()
    assignments: tuple[RateAssignment, ...] = ()
    costs: tuple[ClientCost, ...] = ()
    employees: tuple[EmployeePay, ...] = ()
    expenses: tuple[Expense, ...] = ()
    name: str = ""


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class RevenueLine:
    """One assignment's contribution to a client's revenue."""

    assignment: RateAssignment
    ratio: Decimal
    amount: Money
    converted: Money


@dataclass(frozen=True)
class ClientRevenue:
    """Revenue of one client in the target currency."""

    client: Client
    lines: tuple[RevenueLine, ...]
    costs_total: Money
    total: Money

    @property
    def assignments_total(self) -> Money:
        return self.total - self.costs_total


@dataclass(frozen=True)
class RevenueSummary:
    """Revenue across clients: period-actual, nominal, and paid clients only."""

    prorated: Money
    nominal: Money
    paid: Money


@dataclass(frozen=True)
class SalaryBreakdown:
    """
    Salary figures of one employee for the payroll period (DZD).

    ``net`` amounts are the part paid outside the bank transfer
    (monthly salary minus declared salary).
    """

    ratio: Decimal
    monthly_salary: Money
    prorated_salary: Money
    declared_salary: Money
    recharge: Money
    monthly_bonus: Money
    net_salary: Money
    net_prorated: Money
    total_net: Money
    total_net_prorated: Money
    total: Money
    total_prorated: Money
    transfer: Money


@dataclass(frozen=True)
class PayrollLine:
    employee: EmployeePay
    proration: PayrollProration
    breakdown: SalaryBreakdown
    remark: str


@dataclass(frozen=True)
class PayrollSheet:
    """
    The monthly salary sheet of a tenant.

    Contract:
        Totals are sums over ``lines``; ``grand_total`` additionally
        includes professional DZD expenses.
    """

    tenant_slug: str | None
    lines: tuple[PayrollLine, ...]
    professional_expenses: Money
    totals: dict[str, Money] = field(default_factory=dict)

    @property
    def grand_total(self) -> Money:
        return self.totals["total_prorated"] + self.professional_expenses


@dataclass(frozen=True)
class DashboardSummary:
    """Headline figures of a tenant (or of all tenants) in one currency."""

    currency: str
    revenue: RevenueSummary
    salaries: Money
    professional_expenses: Money
    personal_expenses: Money
    management_fees: Money
    operating_costs: Money
    net_profit: Money
    margin_pct: Decimal
    tenant_slug: str | None = None


# =============================================================================
# Helpers
# =============================================================================


def _sum(amounts: Iterable[Money], currency: str) -> Money:
    total = Money.zero(currency)
    for amount in amounts:
        total = total + amount
    return total


def _margin(net_profit: Money, revenue: Money) -> Decimal:
    if revenue.is_zero:
        return _ZERO
    return net_profit.amount / revenue.amount * _HUNDRED


# =============================================================================
# Client revenue
# =============================================================================


def assignment_ratio(
    assignment: RateAssignment,
    client: Client,
    now: date | datetime | str,
) -> Decimal:
    """Billing ratio of an assignment; 1 when the client has no anchor day."""
    if client.anchor_day is None:
        return _ONE
    return prorate_window(assignment.window, client.anchor_day, now).ratio


def assignment_amount(
    assignment: RateAssignment,
    client: Client,
    now: date | datetime | str,
) -> Money:
    """Period-actual amount of an assignment, in the assignment's currency."""
    return assignment.monthly_rate * assignment_ratio(assignment, client, now)


def _client_revenue(
    client: Client,
    assignments: Iterable[RateAssignment],
    costs: Iterable[ClientCost],
    rates: ExchangeRateSet,
    now: date | datetime | str,
    target: str | None,
    strict: bool,
    prorated: bool,
) -> ClientRevenue:
    currency = normalize_currency_code(target or client.currency, strict=strict)

    lines = []
    for assignment in assignments:
        if assignment.client_id != client.client_id:
            continue
        ratio = assignment_ratio(assignment, client, now) if prorated else _ONE
        amount = assignment.monthly_rate * ratio
        lines.append(RevenueLine(
            assignment=assignment,
            ratio=ratio,
            amount=amount,
            converted=convert_money(amount, currency, rates, strict=strict),
        ))

    costs_total = _sum(
        (
            convert_money(cost.price, currency, rates, strict=strict)
            for cost in costs
            if cost.client_id == client.client_id
        ),
        currency,
    )
    total = _sum((line.converted for line in lines), currency) + costs_total

    logger.debug("client_revenue_calculated", extra={
        "client_id": client.client_id,
        "prorated": prorated,
        "assignments": len(lines),
        "currency": currency,
        "total": str(total.amount),
    })

    return ClientRevenue(
        client=client,
        lines=tuple(lines),
        costs_total=costs_total,
        total=total,
    )


def client_period_revenue(
    client: Client,
    assignments: Iterable[RateAssignment],
    costs: Iterable[ClientCost],
    rates: ExchangeRateSet,
    now: date | datetime | str,
    target: str | None = None,
    *,
    strict: bool = False,
) -> ClientRevenue:
    """
    Period-actual revenue of one client.

    Sum of prorated assignment amounts plus the client's fixed costs,
    everything converted to ``target`` (the client's own currency when
    omitted).
    """
    return _client_revenue(
        client, assignments, costs, rates, now, target, strict, prorated=True
    )


def client_nominal_revenue(
    client: Client,
    assignments: Iterable[RateAssignment],
    costs: Iterable[ClientCost],
    rates: ExchangeRateSet,
    now: date | datetime | str,
    target: str | None = None,
    *,
    strict: bool = False,
) -> ClientRevenue:
    """Revenue of one client at full monthly rates (no proration)."""
    return _client_revenue(
        client, assignments, costs, rates, now, target, strict, prorated=False
    )


def revenue_summary(
    clients: Iterable[Client],
    assignments: Sequence[RateAssignment],
    costs: Sequence[ClientCost],
    rates: ExchangeRateSet,
    now: date | datetime | str,
    target: str,
    *,
    strict: bool = False,
) -> RevenueSummary:
    """Prorated, nominal and paid-client revenue over ``clients``, in ``target``."""
    currency = normalize_currency_code(target, strict=strict)
    prorated = Money.zero(currency)
    nominal = Money.zero(currency)
    paid = Money.zero(currency)

    for client in clients:
        actual = client_period_revenue(
            client, assignments, costs, rates, now, currency, strict=strict
        ).total
        prorated = prorated + actual
        nominal = nominal + client_nominal_revenue(
            client, assignments, costs, rates, now, currency, strict=strict
        ).total
        if client.is_paid:
            paid = paid + actual

    return RevenueSummary(prorated=prorated, nominal=nominal, paid=paid)


# =============================================================================
# Payroll
# =============================================================================


def salary_breakdown(
    employee: EmployeePay,
    ratio: Decimal,
    rates: ExchangeRateSet,
) -> SalaryBreakdown:
    """
    Salary figures of one employee given a payroll ratio, in DZD.

    Only the monthly salary is prorated; the declared (transferred) part,
    recharge and bonus are paid in full.  Components held in another
    currency are converted at ``rates``.
    """

    def dzd(money: Money) -> Money:
        return convert_money(money, PIVOT, rates)

    monthly = dzd(employee.monthly_salary)
    declared = dzd(employee.declared_salary)
    recharge = dzd(employee.recharge)
    bonus = dzd(employee.monthly_bonus)

    prorated_salary = monthly * ratio
    net_salary = monthly - declared
    net_prorated = prorated_salary - declared
    extras = recharge + bonus
    total_net_prorated = net_prorated + extras

    return SalaryBreakdown(
        ratio=ratio,
        monthly_salary=monthly,
        prorated_salary=prorated_salary,
        declared_salary=declared,
        recharge=recharge,
        monthly_bonus=bonus,
        net_salary=net_salary,
        net_prorated=net_prorated,
        total_net=net_salary + extras,
        total_net_prorated=total_net_prorated,
        total=monthly + extras,
        total_prorated=total_net_prorated + declared,
        transfer=declared,
    )


_TOTAL_FIELDS = (
    "prorated_salary",
    "declared_salary",
    "net_prorated",
    "recharge",
    "monthly_bonus",
    "transfer",
    "total_net",
    "total",
    "total_net_prorated",
    "total_prorated",
)


def payroll_sheet(
    employees: Iterable[EmployeePay],
    tenant_slug: str | None,
    now: date | datetime | str,
    rates: ExchangeRateSet,
    expenses: Iterable[Expense] = (),
) -> PayrollSheet:
    """
    Build the salary sheet of the active employees of a tenant.

    Each employee is prorated under the tenant's payroll calendar.  The
    grand total adds professional expenses recorded in DZD.
    """
    lines = []
    for employee in employees:
        if not employee.is_active:
            continue
        proration = prorate_payroll(employee.hire_date, tenant_slug, now)
        lines.append(PayrollLine(
            employee=employee,
            proration=proration,
            breakdown=salary_breakdown(employee, proration.ratio, rates),
            remark=remark_for(employee.hire_date, proration),
        ))

    totals = {
        name: _sum((getattr(line.breakdown, name) for line in lines), PIVOT)
        for name in _TOTAL_FIELDS
    }
    professional = _sum(
        (
            expense.amount
            for expense in expenses
            if expense.kind is ExpenseKind.PROFESSIONAL
            and expense.amount.currency.code == PIVOT
        ),
        PIVOT,
    )

    logger.debug("payroll_sheet_built", extra={
        "tenant_slug": tenant_slug,
        "employees": len(lines),
        "total_prorated": str(totals["total_prorated"].amount),
        "professional_expenses": str(professional.amount),
    })

    return PayrollSheet(
        tenant_slug=tenant_slug,
        lines=tuple(lines),
        professional_expenses=professional,
        totals=totals,
    )


# =============================================================================
# Dashboards
# =============================================================================


def dashboard_summary(
    ledger: TenantLedger,
    rates: ExchangeRateSet,
    now: date | datetime | str,
    display: str,
    *,
    strict: bool = False,
) -> DashboardSummary:
    """
    Headline figures of one tenant in the ``display`` currency.

    Salaries are the prorated totals of the payroll sheet under the
    tenant's own payroll calendar; expenses of every currency count.
    """
    currency = normalize_currency_code(display, strict=strict)

    revenue = revenue_summary(
        ledger.clients, ledger.assignments, ledger.costs, rates, now, currency,
        strict=strict,
    )

    sheet = payroll_sheet(ledger.employees, ledger.slug, now, rates)
    salaries = convert_money(sheet.totals["total_prorated"], currency, rates)

    professional = _sum(
        (
            convert_money(e.amount, currency, rates)
            for e in ledger.expenses
            if e.kind is ExpenseKind.PROFESSIONAL
        ),
        currency,
    )
    personal = _sum(
        (
            convert_money(e.amount, currency, rates)
            for e in ledger.expenses
            if e.kind is ExpenseKind.PERSONAL
        ),
        currency,
    )

    management_fees = salaries + professional
    net_profit = revenue.prorated - management_fees

    summary = DashboardSummary(
        currency=currency,
        revenue=revenue,
        salaries=salaries,
        professional_expenses=professional,
        personal_expenses=personal,
        management_fees=management_fees,
        operating_costs=management_fees,
        net_profit=net_profit,
        margin_pct=_margin(net_profit, revenue.prorated),
        tenant_slug=ledger.slug,
    )

    logger.debug("dashboard_summary_calculated", extra={
        "tenant_slug": ledger.slug,
        "currency": currency,
        "revenue": str(revenue.prorated.amount),
        "net_profit": str(net_profit.amount),
    })
    return summary


def tenants_summary(
    ledgers: Iterable[TenantLedger],
    rates: ExchangeRateSet,
    now: date | datetime | str,
    display: str,
    *,
    strict: bool = False,
) -> DashboardSummary:
    """Sum of the dashboards of several tenants, each on its own payroll calendar."""
    currency = normalize_currency_code(display, strict=strict)
    summaries = [
        dashboard_summary(ledger, rates, now, currency, strict=strict)
        for ledger in ledgers
    ]

    def total(attr: str) -> Money:
        return _sum((getattr(s, attr) for s in summaries), currency)

    revenue = RevenueSummary(
        prorated=_sum((s.revenue.prorated for s in summaries), currency),
        nominal=_sum((s.revenue.nominal for s in summaries), currency),
        paid=_sum((s.revenue.paid for s in summaries), currency),
    )
    net_profit = total("net_profit")

    return DashboardSummary(
        currency=currency,
        revenue=revenue,
        salaries=total("salaries"),
        professional_expenses=total("professional_expenses"),
        personal_expenses=total("personal_expenses"),
        management_fees=total("management_fees"),
        operating_costs=total("operating_costs"),
        net_profit=net_profit,
        margin_pct=_margin(net_profit, revenue.prorated),
    )
