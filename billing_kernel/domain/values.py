"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the value types every billing computation works with:
    Currency, Money, ExchangeRateSet and ActivityWindow.  These replace
    primitive floats and strings wherever monetary or date data appears
    in engine logic.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine. No outward dependencies except
    billing_kernel.domain.currency and billing_kernel.exceptions.

Invariants enforced:
    - All monetary amounts are Decimal (never float); floats handed in by
      callers are converted through ``str`` so 0.1 stays 0.1.
    - Currency codes are validated against the closed EUR/USD/AED/DZD set
      (with the legacy ``euro`` alias) at construction time.
    - Exchange rates are positive, finite Decimals.
    - An activity window never ends before it starts.

Failure modes:
    - ValueError on construction with invalid amounts or currencies
    - CurrencyMismatchError when arithmetic mixes different currencies
    - InvalidExchangeRateError for zero, negative or non-finite rates
    - InvalidActivityWindowError / InvalidDateError for malformed windows
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from billing_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from billing_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidActivityWindowError,
    InvalidDateError,
    InvalidExchangeRateError,
)


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Coerce a numeric input to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid amount: {value!r}") from e


def to_date(value: date | datetime | str) -> date:
    """
    Coerce a date-like input to a calendar date.

    Accepts ``date``, ``datetime`` (time part dropped) and ISO strings such
    as ``"2025-06-05"`` or ``"2025-06-05T10:00:00"``.

    Raises:
        InvalidDateError: If the value cannot be interpreted.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError as e:
            raise InvalidDateError(value) from e
    raise InvalidDateError(value)


@dataclass(frozen=True, slots=True)
class Currency:
    """
    Supported currency code value object.

    Contract:
        Wraps one of EUR, USD, AED, DZD. Normalized (uppercased, ``euro``
        resolved to EUR) on construction. Unsupported codes are rejected.

    Non-goals:
        - Does NOT perform currency conversion (see billing_engines.conversion)
    """

    code: str

    def __post_init__(self) -> None:
        normalized = CurrencyRegistry.normalize(self.code)
        if normalized is None:
            raise ValueError(f"Unsupported currency code: {self.code!r}")
        object.__setattr__(self, "code", normalized)

    @property
    def info(self) -> CurrencyInfo:
        return CurrencyRegistry.get_info(self.code)

    @property
    def decimal_places(self) -> int:
        return self.info.decimal_places

    @property
    def is_pivot(self) -> bool:
        """True for the pivot currency (DZD)."""
        return self.code == CurrencyRegistry.PIVOT

    @property
    def name(self) -> str:
        return self.info.name

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency -- they are NEVER separated.

    Guarantees:
        - Immutable and hashable (frozen dataclass with slots)
        - amount is always a Decimal
        - Addition, subtraction and comparison refuse to mix currencies, so
          a sum can only be built after every term was converted

    Non-goals:
        - Does NOT perform currency conversion (use convert_money)
        - Does NOT auto-round -- callers must explicitly call .round()
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", to_decimal(self.amount))

        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int | float, currency: str | Currency) -> Money:
        """
        Factory method for creating Money.

        Raises:
            ValueError: If amount cannot be converted or currency is unsupported.
        """
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=to_decimal(amount), currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        """Create a zero amount in the given currency."""
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=Decimal("0"), currency=currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == Decimal("0")

    @property
    def is_negative(self) -> bool:
        return self.amount < Decimal("0")

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Round to the currency's decimal places. Returns a new Money."""
        quantum = Decimal(self.currency.info.quantize_string)
        rounded = self.amount.quantize(quantum, rounding=rounding)
        return Money(amount=rounded, currency=self.currency)

    def _check_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency.code, other.currency.code)

    def __add__(self, other: Money) -> Money:
        """Add two Money values. Must be same currency."""
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        """Subtract two Money values. Must be same currency."""
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other)
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __neg__(self) -> Money:
        return Money(amount=-self.amount, currency=self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        """Multiply by a scalar (typically a proration ratio)."""
        if isinstance(factor, (int, str)):
            factor = Decimal(str(factor))
        if not isinstance(factor, Decimal):
            return NotImplemented
        return Money(amount=self.amount * factor, currency=self.currency)

    def __rmul__(self, factor: Decimal | int | str) -> Money:
        return self.__mul__(factor)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other)
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"


_DEFAULT_EUR_DZD = Decimal("140")
_DEFAULT_USD_DZD = Decimal("133")
_DEFAULT_AED_DZD = Decimal("36")


@dataclass(frozen=True, slots=True)
class ExchangeRateSet:
    """
    Rates of every supported currency against the DZD pivot.

    Contract:
        Each field means "1 unit of X equals N units of DZD". Defaults are
        the compiled-in fallbacks used whenever live rates are unavailable.

    Guarantees:
        - Immutable; the engines never mutate a rate set
        - Every rate is a positive, finite Decimal

    Non-goals:
        - Does NOT store effective dates or rate provenance
    """

    eur_dzd: Decimal = _DEFAULT_EUR_DZD
    usd_dzd: Decimal = _DEFAULT_USD_DZD
    aed_dzd: Decimal = _DEFAULT_AED_DZD

    _FIELDS = ("eur_dzd", "usd_dzd", "aed_dzd")

    def __post_init__(self) -> None:
        for name in self._FIELDS:
            raw = getattr(self, name)
            try:
                rate = to_decimal(raw)
            except ValueError as e:
                raise InvalidExchangeRateError(name, str(raw), "not a number") from e
            if not rate.is_finite():
                raise InvalidExchangeRateError(name, str(raw), "rate must be finite")
            if rate <= Decimal("0"):
                raise InvalidExchangeRateError(name, str(raw), "rate must be positive")
            object.__setattr__(self, name, rate)

    @classmethod
    def defaults(cls) -> ExchangeRateSet:
        """The compiled-in fallback rates (140 / 133 / 36)."""
        return cls()

    @classmethod
    def of(
        cls,
        eur_dzd: Decimal | str | int | float = _DEFAULT_EUR_DZD,
        usd_dzd: Decimal | str | int | float = _DEFAULT_USD_DZD,
        aed_dzd: Decimal | str | int | float = _DEFAULT_AED_DZD,
    ) -> ExchangeRateSet:
        return cls(eur_dzd=eur_dzd, usd_dzd=usd_dzd, aed_dzd=aed_dzd)

    def to_pivot(self, code: str) -> Decimal:
        """
        Rate that turns one unit of ``code`` into DZD.

        ``code`` must already be normalized; the pivot itself returns 1.
        """
        key = CurrencyRegistry.rate_key(code)
        if key is None:
            return Decimal("1")
        return getattr(self, key)

    def as_dict(self) -> dict[str, Decimal]:
        return {name: getattr(self, name) for name in self._FIELDS}

    def __str__(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.as_dict().items())


@dataclass(frozen=True, slots=True)
class ActivityWindow:
    """
    Span during which an assignment or employment is active.

    Contract:
        ``end`` of None means "still active". Both bounds are whole days;
        the start day counts from midnight and the end day counts through
        23:59:59.999.

    Guarantees:
        - start <= end whenever end is present
    """

    start: date
    end: date | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", to_date(self.start))
        if self.end is not None:
            object.__setattr__(self, "end", to_date(self.end))
            if self.end < self.start:
                raise InvalidActivityWindowError(
                    self.start.isoformat(), self.end.isoformat()
                )

    @classmethod
    def of(cls, start: Any, end: Any = None) -> ActivityWindow:
        """Build a window from dates, datetimes or ISO strings (empty end = open)."""
        return cls(start=start, end=end or None)

    @property
    def is_open(self) -> bool:
        """True while the activity has no end date."""
        return self.end is None
