"""
Module: billing_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for
    billing_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import billing_kernel (and sibling engine modules).
    MUST NOT import billing_config or billing_services.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      ``now`` is always passed in by the caller.
    - Decimal-only arithmetic: ratios and monetary amounts are ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Top-level engine functions are wrapped by ``@traced_engine`` (see
    ``billing_engines.tracer``), emitting BILLING_ENGINE_TRACE records
    with engine name, version, input fingerprint and duration.

Usage:
    from billing_engines.proration import prorate
    from billing_engines.payroll import payroll_ratio
    from billing_engines.conversion import convert
    from billing_engines.aggregation import dashboard_summary
"""

from billing_kernel.logging_config import get_logger

logger = get_logger("engines")

from billing_engines.aggregation import (
    Client,
    ClientCost,
    ClientRevenue,
    DashboardSummary,
    EmployeePay,
    Expense,
    ExpenseKind,
    PayrollLine,
    PayrollSheet,
    RateAssignment,
    RevenueLine,
    RevenueSummary,
    SalaryBreakdown,
    TenantLedger,
    assignment_amount,
    assignment_ratio,
    client_nominal_revenue,
    client_period_revenue,
    dashboard_summary,
    payroll_sheet,
    revenue_summary,
    salary_breakdown,
    tenants_summary,
)
from billing_engines.conversion import (
    convert,
    convert_money,
    currency_label,
    normalize_currency_code,
)
from billing_engines.payroll import (
    PAYROLL_CALENDAR_RULES,
    STANDARD_PAYMENT_DAY,
    PayrollCalendarRule,
    PayrollPeriod,
    PayrollProration,
    PayrollRegime,
    payroll_period,
    payroll_ratio,
    payroll_remark,
    prorate_payroll,
    remark_for,
)
from billing_engines.proration import (
    BillingPeriod,
    ProrationOutcome,
    ProrationResult,
    billing_period,
    prorate,
    prorate_window,
)
from billing_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Proration
    "BillingPeriod",
    "ProrationOutcome",
    "ProrationResult",
    "billing_period",
    "prorate",
    "prorate_window",
    # Payroll
    "PAYROLL_CALENDAR_RULES",
    "STANDARD_PAYMENT_DAY",
    "PayrollCalendarRule",
    "PayrollPeriod",
    "PayrollProration",
    "PayrollRegime",
    "payroll_period",
    "payroll_ratio",
    "payroll_remark",
    "prorate_payroll",
    "remark_for",
    # Conversion
    "convert",
    "convert_money",
    "currency_label",
    "normalize_currency_code",
    # Aggregation
    "Client",
    "ClientCost",
    "ClientRevenue",
    "DashboardSummary",
    "EmployeePay",
    "Expense",
    "ExpenseKind",
    "PayrollLine",
    "PayrollSheet",
    "RateAssignment",
    "RevenueLine",
    "RevenueSummary",
    "SalaryBreakdown",
    "TenantLedger",
    "assignment_amount",
    "assignment_ratio",
    "client_nominal_revenue",
    "client_period_revenue",
    "dashboard_summary",
    "payroll_sheet",
    "revenue_summary",
    "salary_breakdown",
    "tenants_summary",
    # Tracing
    "compute_input_fingerprint",
    "traced_engine",
]
