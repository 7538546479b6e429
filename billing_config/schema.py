"""
Engine configuration schema.

Frozen dataclasses the YAML configuration is parsed into.  The loader
builds them; services receive an ``EngineConfig`` from
``billing_config.get_active_config()`` and never read the file
themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from billing_kernel.domain.values import ExchangeRateSet


@dataclass(frozen=True)
class EngineConfig:
    """
    Runtime configuration of the valuation engines.

    Attributes:
        rates: Exchange rates against DZD used when no settings rows
            override them
        strict_currency: Raise on unknown currency codes instead of
            valuing them as EUR
        display_currency: Currency dashboard totals are shown in
        tenant_currencies: Per-tenant display currency overrides
        default_client_currency: Billing currency of clients that have
            none recorded
        checksum: SHA-256 of the canonical source data
        source: Path the configuration was read from
    """

    rates: ExchangeRateSet = field(default_factory=ExchangeRateSet.defaults)
    strict_currency: bool = False
    display_currency: str = "EUR"
    tenant_currencies: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )
    default_client_currency: str = "EUR"
    checksum: str = ""
    source: str = ""

    def currency_for_tenant(self, tenant_slug: str | None) -> str:
        """Display currency of a tenant, falling back to the global one."""
        if tenant_slug is None:
            return self.display_currency
        return self.tenant_currencies.get(tenant_slug, self.display_currency)
