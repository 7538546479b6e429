"""
billing_services.valuation_service -- Clock-driven orchestration of the engines.

Responsibility:
    Give callers one object to ask for ratios, conversions, client revenue
    and dashboard figures "as of now".  The service reads the injected
    clock exactly once per top-level call and threads that instant through
    every engine it invokes, so one dashboard never mixes two clock reads.

Architecture position:
    Services -- thin orchestration over billing_engines.
    Holds no mutable state besides its injected Clock and EngineConfig.

Invariants enforced:
    - ``clock.now()`` is called once per public method call.
    - The configured ``strict_currency`` flag governs every conversion.
    - Rates default to the configuration; settings rows, when given,
      override them through ``rates_from_settings``.

Failure modes:
    - Propagates engine errors (InvalidAnchorDayError,
      InvalidActivityWindowError, UnknownCurrencyError in strict mode).
    - ConfigurationError when no config is injected and the packaged
      defaults cannot be loaded.

Usage:
    from billing_kernel.domain.clock import DeterministicClock
    from billing_services import ValuationService

    service = ValuationService(clock=DeterministicClock())
    service.prorate("2025-06-05", anchor_day=25)
    service.dashboard(ledger)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from billing_config import EngineConfig, get_active_config, rates_from_settings
from billing_engines.aggregation import (
    Client,
    ClientCost,
    ClientRevenue,
    DashboardSummary,
    EmployeePay,
    Expense,
    PayrollSheet,
    RateAssignment,
    TenantLedger,
    client_period_revenue,
    dashboard_summary,
    payroll_sheet,
    tenants_summary,
)
from billing_engines.conversion import convert
from billing_engines.payroll import payroll_ratio
from billing_engines.proration import prorate
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.values import ExchangeRateSet
from billing_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.valuation")


class ValuationService:
    """
    Entry point for time-dependent valuation questions.

    Contract:
        Receives a Clock and an EngineConfig via constructor injection.
    Guarantees:
        - Each public method reads the clock once.
        - Results are identical to calling the engines directly with the
          same ``now``.
    Non-goals:
        - Does not load records; callers pass clients, assignments,
          employees and expenses in.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
    ):
        self.clock = clock or SystemClock()
        self.config = config if config is not None else get_active_config()

    def _now(self) -> datetime:
        now = self.clock.now()
        logger.debug("valuation_clock_read", extra={"now": now})
        return now

    def resolve_rates(
        self,
        settings: Iterable[Mapping[str, Any]] | Mapping[str, Any] | None = None,
    ) -> ExchangeRateSet:
        """Configured rates, overridden by any usable settings rows."""
        if settings is None:
            return self.config.rates
        return rates_from_settings(settings, base=self.config.rates)

    def prorate(
        self,
        start: date | datetime | str,
        anchor_day: int,
        end: date | datetime | str | None = None,
    ) -> Decimal:
        """Billing ratio of an activity window for the current period."""
        return prorate(start, anchor_day, end, self._now())

    def payroll_ratio(
        self,
        hire_date: date | datetime | str,
        tenant_slug: str | None,
    ) -> Decimal:
        """Payroll ratio of an employee under the tenant's calendar."""
        return payroll_ratio(hire_date, tenant_slug, self._now())

    def convert(
        self,
        amount: Decimal | int | float | str,
        from_currency: str | None,
        to_currency: str | None,
        rates: ExchangeRateSet | None = None,
    ) -> Decimal:
        return convert(
            amount,
            from_currency,
            to_currency,
            rates or self.config.rates,
            strict=self.config.strict_currency,
        )

    def client_revenue(
        self,
        client: Client,
        assignments: Iterable[RateAssignment],
        costs: Iterable[ClientCost] = (),
        rates: ExchangeRateSet | None = None,
        target: str | None = None,
    ) -> ClientRevenue:
        """
        Period-actual revenue of a client.

        Shown in ``target``, else the client's currency, else the
        configured default client currency.
        """
        currency = target or client.currency or self.config.default_client_currency
        return client_period_revenue(
            client,
            assignments,
            costs,
            rates or self.config.rates,
            self._now(),
            currency,
            strict=self.config.strict_currency,
        )

    def payroll(
        self,
        employees: Iterable[EmployeePay],
        tenant_slug: str | None,
        expenses: Iterable[Expense] = (),
        rates: ExchangeRateSet | None = None,
    ) -> PayrollSheet:
        """Salary sheet of a tenant's active employees."""
        with LogContext.bind(tenant=tenant_slug):
            return payroll_sheet(
                employees, tenant_slug, self._now(), rates or self.config.rates, expenses
            )

    def dashboard(
        self,
        ledger: TenantLedger,
        rates: ExchangeRateSet | None = None,
        display: str | None = None,
    ) -> DashboardSummary:
        """Headline figures of one tenant, in its configured display currency."""
        currency = display or self.config.currency_for_tenant(ledger.slug)
        with LogContext.bind(tenant=ledger.slug):
            summary = dashboard_summary(
                ledger,
                rates or self.config.rates,
                self._now(),
                currency,
                strict=self.config.strict_currency,
            )
            logger.info("dashboard_computed", extra={
                "currency": summary.currency,
                "net_profit": summary.net_profit.amount,
                "margin_pct": summary.margin_pct,
            })
        return summary

    def tenants_dashboard(
        self,
        ledgers: Iterable[TenantLedger],
        rates: ExchangeRateSet | None = None,
        display: str | None = None,
    ) -> DashboardSummary:
        """Figures of several tenants summed in one display currency."""
        ledgers = list(ledgers)
        summary = tenants_summary(
            ledgers,
            rates or self.config.rates,
            self._now(),
            display or self.config.display_currency,
            strict=self.config.strict_currency,
        )
        logger.info("tenants_dashboard_computed", extra={
            "tenants": len(ledgers),
            "currency": summary.currency,
            "net_profit": summary.net_profit.amount,
        })
        return summary
