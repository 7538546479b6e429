"""Currency -- closed registry of supported codes, their rate keys and precision."""

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single supported currency."""

    code: str
    decimal_places: int
    name: str
    rate_key: str | None

    @property
    def quantize_string(self) -> str:
        """String for Decimal.quantize() to round to this currency's precision."""
        if self.decimal_places == 0:
            return "1"
        return "0." + "0" * self.decimal_places


class CurrencyRegistry:
    """Registry of the four currencies the dashboards trade in.

    DZD is the pivot: every other currency carries the key of its
    "1 unit = N DZD" rate in an ExchangeRateSet.
    """

    PIVOT: ClassVar[str] = "DZD"

    # Unknown codes are valued as euros by the conversion table
    FALLBACK: ClassVar[str] = "EUR"

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        "EUR": CurrencyInfo("EUR", 2, "Euro", "eur_dzd"),
        "USD": CurrencyInfo("USD", 2, "US Dollar", "usd_dzd"),
        "AED": CurrencyInfo("AED", 2, "UAE Dirham", "aed_dzd"),
        "DZD": CurrencyInfo("DZD", 2, "Algerian Dinar", None),
    }

    # Legacy spellings still stored on older client records
    _ALIASES: ClassVar[dict[str, str]] = {
        "EURO": "EUR",
    }

    @classmethod
    def normalize(cls, code: str | None) -> str | None:
        """Uppercase, strip and resolve aliases. Returns None if unsupported."""
        if not code or not isinstance(code, str):
            return None
        normalized = code.upper().strip()
        normalized = cls._ALIASES.get(normalized, normalized)
        if normalized not in cls._CURRENCIES:
            return None
        return normalized

    @classmethod
    def get_info(cls, code: str | None) -> CurrencyInfo | None:
        """Get currency information by code or alias."""
        normalized = cls.normalize(code)
        if normalized is None:
            return None
        return cls._CURRENCIES[normalized]

    @classmethod
    def rate_key(cls, code: str) -> str | None:
        """Name of the ExchangeRateSet field for this currency (None for the pivot)."""
        info = cls.get_info(code)
        return info.rate_key if info else None
