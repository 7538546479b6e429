"""
Typed Exception Hierarchy for the Billing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (client list, salary sheet, dashboards) must be able to tell a bad
exchange-rate configuration apart from a malformed assignment without parsing
messages. Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Example:
    try:
        rates = ExchangeRateSet.of(eur_dzd=raw_eur, usd_dzd=raw_usd, aed_dzd=raw_aed)
    except InvalidExchangeRateError as e:
        log.warning("bad rate", extra={"pair": e.pair, "rate": e.rate_value})
        rates = ExchangeRateSet.defaults()

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BillingKernelError (base)
    |
    +-- InvalidInputError
    |   +-- InvalidAnchorDayError
    |   +-- InvalidActivityWindowError
    |   +-- InvalidDateError
    |
    +-- CurrencyError
    |   +-- UnknownCurrencyError
    |   +-- CurrencyMismatchError
    |
    +-- ExchangeRateError
    |   +-- InvalidExchangeRateError
    |   +-- ExchangeRateNotFoundError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                     | When Raised
----------------|--------------------------|--------------------------------------
Input           | INVALID_ANCHOR_DAY       | Anchor day outside 1..31
                | INVALID_ACTIVITY_WINDOW  | end date before start date
                | INVALID_DATE             | Unparsable date value
----------------|--------------------------|--------------------------------------
Currency        | UNKNOWN_CURRENCY         | Code outside EUR/USD/AED/DZD (strict)
                | CURRENCY_MISMATCH        | Adding Money in different currencies
----------------|--------------------------|--------------------------------------
Exchange Rate   | INVALID_EXCHANGE_RATE    | Rate is zero/negative/non-finite
                | EXCHANGE_RATE_NOT_FOUND  | Rate missing from page or rate set
----------------|--------------------------|--------------------------------------
Configuration   | CONFIGURATION_ERROR      | YAML config missing/malformed

Degenerate proration periods are NOT errors: they yield a ratio of 0.
"""


class BillingKernelError(Exception):
    """
    Base exception for all billing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BILLING_KERNEL_ERROR"


# Input-related exceptions


class InvalidInputError(BillingKernelError):
    """Base exception for malformed engine inputs."""

    code: str = "INVALID_INPUT"


class InvalidAnchorDayError(InvalidInputError):
    """Anchor day is not a day-of-month in 1..31."""

    code: str = "INVALID_ANCHOR_DAY"

    def __init__(self, anchor_day: object):
        self.anchor_day = anchor_day
        super().__init__(f"Anchor day must be an integer in 1..31, got {anchor_day!r}")


class InvalidActivityWindowError(InvalidInputError):
    """Activity window ends before it starts."""

    code: str = "INVALID_ACTIVITY_WINDOW"

    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(f"Activity window ends before it starts: {start} > {end}")


class InvalidDateError(InvalidInputError):
    """Date value cannot be interpreted."""

    code: str = "INVALID_DATE"

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Cannot interpret {value!r} as a date")


# Currency-related exceptions


class CurrencyError(BillingKernelError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class UnknownCurrencyError(CurrencyError):
    """Currency code is outside the supported EUR/USD/AED/DZD set."""

    code: str = "UNKNOWN_CURRENCY"

    def __init__(self, currency: object):
        self.currency = currency
        super().__init__(f"Unsupported currency code: {currency!r}")


class CurrencyMismatchError(CurrencyError):
    """Attempted operation on mismatched currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str):
        self.currency1 = currency1
        self.currency2 = currency2
        super().__init__(f"Currency mismatch: {currency1} vs {currency2}")


# Exchange-rate-related exceptions


class ExchangeRateError(BillingKernelError):
    """Base exception for exchange rate errors."""

    code: str = "EXCHANGE_RATE_ERROR"


class InvalidExchangeRateError(ExchangeRateError):
    """
    Exchange rate value is invalid (zero, negative, or not a finite number).

    A zero rate would make conversion out of the pivot undefined and a
    negative rate is meaningless; both would otherwise surface as
    Infinity/NaN in the dashboards.
    """

    code: str = "INVALID_EXCHANGE_RATE"

    def __init__(self, pair: str, rate_value: str, reason: str):
        self.pair = pair
        self.rate_value = rate_value
        self.reason = reason
        super().__init__(f"Invalid exchange rate {pair}={rate_value}: {reason}")


class ExchangeRateNotFoundError(ExchangeRateError):
    """No rate could be found for the requested pair or source."""

    code: str = "EXCHANGE_RATE_NOT_FOUND"

    def __init__(self, pair: str, source: str):
        self.pair = pair
        self.source = source
        super().__init__(f"No exchange rate found for {pair} in {source}")


# Configuration exceptions


class ConfigurationError(BillingKernelError):
    """Engine configuration is missing or malformed."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")
