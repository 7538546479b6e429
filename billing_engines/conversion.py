"""
Module: billing_engines.conversion
Responsibility:
    Convert amounts between EUR, USD, AED and DZD through the DZD pivot
    using an ExchangeRateSet.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Conversion rule:
    amount --(x rate[from])--> DZD --(/ rate[to])--> target
    DZD has an implicit rate of 1 on both legs.

Invariants enforced:
    - Identity: converting to the same (normalized) currency returns the
      amount unchanged, with no rounding.
    - Pivot consistency: convert(a, X, DZD) == a * rate[X].
    - No caching: every call reads the rate set it is given.

Failure modes:
    - Unknown currency codes are valued as EUR and a ``currency_fallback``
      warning is logged.  With ``strict=True`` UnknownCurrencyError is
      raised instead.

Usage:
    from decimal import Decimal
    from billing_engines.conversion import convert
    from billing_kernel.domain.values import ExchangeRateSet

    convert(Decimal("100"), "euro", "USD", ExchangeRateSet.defaults())
    # Decimal(14000) / Decimal(133) ~= 105.26
"""

from __future__ import annotations

from decimal import Decimal

from billing_engines.tracer import traced_engine
from billing_kernel.domain.currency import CurrencyRegistry
from billing_kernel.domain.values import ExchangeRateSet, Money, to_decimal
from billing_kernel.exceptions import UnknownCurrencyError
from billing_kernel.logging_config import get_logger

logger = get_logger("engines.conversion")


def normalize_currency_code(code: str | None, *, strict: bool = False) -> str:
    """
    Resolve a raw currency code to one of EUR, USD, AED, DZD.

    Case-insensitive; ``euro`` is accepted for EUR.  Anything else falls
    back to EUR unless ``strict`` is set.

    Raises:
        UnknownCurrencyError: If ``strict`` and the code is not supported.
    """
    normalized = CurrencyRegistry.normalize(code)
    if normalized is not None:
        return normalized
    if strict:
        raise UnknownCurrencyError(code)
    logger.warning("currency_fallback", extra={
        "currency": code,
        "fallback": CurrencyRegistry.FALLBACK,
    })
    return CurrencyRegistry.FALLBACK


def currency_label(code: str | None) -> str:
    """Display label for a currency; unknown codes display as EUR."""
    normalized = CurrencyRegistry.normalize(code)
    return normalized if normalized is not None else CurrencyRegistry.FALLBACK


@traced_engine("conversion", "1.0", fingerprint_fields=("amount", "from_currency", "to_currency"))
def convert(
    amount: Decimal | int | float | str,
    from_currency: str | None,
    to_currency: str | None,
    rates: ExchangeRateSet,
    *,
    strict: bool = False,
) -> Decimal:
    """
    Convert ``amount`` from one currency to another through DZD.

    Args:
        amount: Amount to convert (floats are read through ``str``)
        from_currency: Source code, case-insensitive
        to_currency: Target code, case-insensitive
        rates: Rates against DZD
        strict: Raise on unknown codes instead of valuing them as EUR

    Returns:
        Converted amount, unrounded
    """
    value = to_decimal(amount)
    source = normalize_currency_code(from_currency, strict=strict)
    target = normalize_currency_code(to_currency, strict=strict)

    if source == target:
        return value

    in_pivot = value * rates.to_pivot(source)
    result = in_pivot / rates.to_pivot(target)

    logger.debug("currency_converted", extra={
        "amount": str(value),
        "from_currency": source,
        "to_currency": target,
        "result": str(result),
    })
    return result


def convert_money(
    money: Money,
    to_currency: str,
    rates: ExchangeRateSet,
    *,
    strict: bool = False,
) -> Money:
    """Convert a Money value, returning Money in the target currency."""
    target = normalize_currency_code(to_currency, strict=strict)
    if money.currency.code == target:
        return money
    amount = convert(money.amount, money.currency.code, target, rates, strict=strict)
    return Money.of(amount, target)
