"""Extract the Paysera EUR/DZD rate from the exchange-rate page markup."""

from __future__ import annotations

import re
from decimal import Decimal

from billing_kernel.exceptions import ExchangeRateNotFoundError
from billing_kernel.logging_config import get_logger

logger = get_logger("config.exchange_page")

# Table layout first ("Paysera | 245.5 DZD"), then any mention on one line
_PAYSERA_CELL = re.compile(r"Paysera[^|]*\|\s*(\d+(?:\.\d+)?)\s*DZD", re.IGNORECASE)
_PAYSERA_LOOSE = re.compile(r"Paysera.*?(\d+(?:\.\d+)?)\s*DZD", re.IGNORECASE)


def parse_paysera_rate(html: str) -> Decimal:
    """
    Return the Paysera rate quoted on the page, in DZD per EUR.

    Raises:
        ExchangeRateNotFoundError: if no Paysera quote is present.
    """
    match = _PAYSERA_CELL.search(html) or _PAYSERA_LOOSE.search(html)
    if match is None:
        logger.warning("paysera_rate_not_found", extra={"snippet": html[:200]})
        raise ExchangeRateNotFoundError("eur_dzd", "paysera")
    rate = Decimal(match.group(1))
    logger.debug("paysera_rate_parsed", extra={"rate": str(rate)})
    return rate
