"""
Pytest fixtures for the billing valuation test suite.

Provides:
- Structured logging configured for the whole session
- A ``captured_logs`` fixture returning emitted records as parsed JSON
- Deterministic clocks and a default EngineConfig
- Small ledger builders shared by the engine and service tests
"""

import json
import logging
from datetime import date, datetime
from io import StringIO

import pytest

from billing_config import EngineConfig
from billing_engines.aggregation import (
    Client,
    ClientCost,
    EmployeePay,
    Expense,
    ExpenseKind,
    RateAssignment,
    TenantLedger,
)
from billing_kernel.domain.clock import DeterministicClock
from billing_kernel.domain.values import ActivityWindow, ExchangeRateSet, Money
from billing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# 2025-06-10 is inside the May 25 .. June 25 billing period
REFERENCE_NOW = datetime(2025, 6, 10, 12, 0, 0)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture billing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            convert(1, "xyz", "EUR", rates)
            logs = captured_logs()
            assert any(r["message"] == "currency_fallback" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("billing_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and configuration fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Clock frozen at 2025-06-10 12:00."""
    return DeterministicClock(REFERENCE_NOW)


@pytest.fixture
def default_rates():
    return ExchangeRateSet.defaults()


@pytest.fixture
def engine_config():
    """In-memory configuration matching the packaged defaults."""
    return EngineConfig(
        rates=ExchangeRateSet.defaults(),
        strict_currency=False,
        display_currency="EUR",
        default_client_currency="EUR",
    )


# =============================================================================
# Ledger fixtures
# =============================================================================


@pytest.fixture
def acme_ledger():
    """
    A tenant on the standard day-25 payroll with two clients.

    As of 2025-06-10:
      - client "c1" (anchor 25, EUR, paid): one full-period assignment
        at 1000 EUR and a 50 EUR fixed cost
      - client "c2" (no anchor day, USD, unpaid): one assignment at
        700 USD, billed in full
      - one employee hired long ago, 70000 DZD monthly
      - 14000 DZD professional and 1400 DZD personal expenses
    """
    return TenantLedger(
        slug="acme",
        clients=(
            Client("c1", anchor_day=25, currency="EUR", is_paid=True),
            Client("c2", anchor_day=None, currency="USD", is_paid=False),
        ),
        assignments=(
            RateAssignment(
                "e1", "c1", Money.of("1000", "EUR"), ActivityWindow.of(date(2025, 1, 1))
            ),
            RateAssignment(
                "e1", "c2", Money.of("700", "USD"), ActivityWindow.of(date(2025, 6, 1))
            ),
        ),
        costs=(ClientCost("c1", Money.of("50", "EUR"), "licence"),),
        employees=(
            EmployeePay(
                employee_id="e1",
                hire_date=date(2024, 1, 1),
                monthly_salary=Money.of("70000", "DZD"),
                declared_salary=Money.of("20000", "DZD"),
                recharge=Money.of("0", "DZD"),
                monthly_bonus=Money.of("0", "DZD"),
            ),
        ),
        expenses=(
            Expense(Money.of("14000", "DZD"), ExpenseKind.PROFESSIONAL, "rent"),
            Expense(Money.of("1400", "DZD"), ExpenseKind.PERSONAL, "lunch"),
        ),
    )
