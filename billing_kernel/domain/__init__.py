"""
Pure domain layer.

Value objects and the time abstraction used by the billing engines, with
NO dependencies on:
- Persistence
- Wall-clock time (other than SystemClock)
- I/O

All domain objects are immutable and deterministic.
"""

from billing_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SequentialClock,
    SystemClock,
)
from billing_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from billing_kernel.domain.values import (
    ActivityWindow,
    Currency,
    ExchangeRateSet,
    Money,
    to_date,
    to_decimal,
)

__all__ = [
    "ActivityWindow",
    "Clock",
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DeterministicClock",
    "ExchangeRateSet",
    "Money",
    "SequentialClock",
    "SystemClock",
    "to_date",
    "to_decimal",
]
