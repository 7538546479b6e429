"""
Configuration loader -- YAML parsing and settings-row rate resolution.

Responsibility:
    Read the engine configuration YAML, validate it and turn it into an
    ``EngineConfig``.  Also resolves exchange rates stored as settings
    rows (``exchange_rate_eur_dzd`` and friends).

Architecture position:
    Configuration -- sits above ``billing_kernel`` / ``billing_engines``
    and below ``billing_services``.

Key functions:
    * ``load_yaml_file``      -- read one YAML file into a dict.
    * ``parse_engine_config`` -- dict to ``EngineConfig``.
    * ``compute_checksum``    -- deterministic SHA-256 of the source data.
    * ``rates_from_settings`` -- settings rows to ``ExchangeRateSet``.

Failure modes:
    * Missing file, malformed YAML or invalid values raise
      ``ConfigurationError``.
    * Settings rows never raise: a missing or unparsable row keeps the
      default rate and logs ``exchange_rate_setting_invalid``.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from billing_config.schema import EngineConfig
from billing_kernel.domain.currency import CurrencyRegistry
from billing_kernel.domain.values import ExchangeRateSet, to_decimal
from billing_kernel.exceptions import ConfigurationError, ExchangeRateError
from billing_kernel.logging_config import get_logger

logger = get_logger("config.loader")

SETTINGS_PREFIX = "exchange_rate_"

RATE_SETTING_KEYS = tuple(f"{SETTINGS_PREFIX}{name}" for name in ExchangeRateSet._FIELDS)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        ConfigurationError: if the file is missing, unreadable, not valid
            YAML, or its top level is not a mapping.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(str(path), f"cannot read file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(str(path), f"invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _section(data: Mapping[str, Any], name: str, source: str) -> Mapping[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(source, f"'{name}' must be a mapping")
    return value


def _currency(value: Any, what: str, source: str) -> str:
    normalized = CurrencyRegistry.normalize(value)
    if normalized is None:
        raise ConfigurationError(source, f"{what}: unsupported currency {value!r}")
    return normalized


def parse_rates(data: Mapping[str, Any], source: str = "<memory>") -> ExchangeRateSet:
    """Build an ExchangeRateSet from the ``exchange_rates`` section."""
    defaults = ExchangeRateSet.defaults().as_dict()
    values = {}
    for name in ExchangeRateSet._FIELDS:
        raw = data.get(name, defaults[name])
        try:
            values[name] = to_decimal(raw)
        except ValueError as e:
            raise ConfigurationError(source, f"exchange_rates.{name}: {e}") from e
    try:
        return ExchangeRateSet(**values)
    except ExchangeRateError as e:
        raise ConfigurationError(source, str(e)) from e


def parse_engine_config(data: Mapping[str, Any], source: str = "<memory>") -> EngineConfig:
    """
    Turn the raw YAML mapping into an ``EngineConfig``.

    Every section is optional; absent keys take the compiled-in defaults.
    """
    rates = parse_rates(_section(data, "exchange_rates", source), source)

    currency = _section(data, "currency", source)
    strict = currency.get("strict", False)
    if not isinstance(strict, bool):
        raise ConfigurationError(source, "currency.strict must be true or false")

    tenant_currencies = {}
    for slug, tenant in _section(data, "tenants", source).items():
        if not isinstance(tenant, Mapping):
            raise ConfigurationError(source, f"tenants.{slug} must be a mapping")
        if "display_currency" in tenant:
            tenant_currencies[str(slug)] = _currency(
                tenant["display_currency"], f"tenants.{slug}.display_currency", source
            )

    return EngineConfig(
        rates=rates,
        strict_currency=strict,
        display_currency=_currency(currency.get("display", "EUR"), "currency.display", source),
        tenant_currencies=MappingProxyType(tenant_currencies),
        default_client_currency=_currency(
            currency.get("default_client", "EUR"), "currency.default_client", source
        ),
        checksum=compute_checksum(dict(data)),
        source=source,
    )


def rates_from_settings(
    rows: Iterable[Mapping[str, Any]] | Mapping[str, Any],
    base: ExchangeRateSet | None = None,
) -> ExchangeRateSet:
    """
    Resolve exchange rates from settings rows.

    Accepts either ``{"key": ..., "value": ...}`` rows or a plain
    ``{key: value}`` mapping.  Keys other than the three
    ``exchange_rate_*`` settings are ignored.  A row whose value is
    missing, unparsable, zero or negative keeps the ``base`` rate.
    """
    base = base or ExchangeRateSet.defaults()
    if isinstance(rows, Mapping):
        pairs = list(rows.items())
    else:
        pairs = [(row.get("key"), row.get("value")) for row in rows]

    values = base.as_dict()
    for key, raw in pairs:
        if key not in RATE_SETTING_KEYS:
            continue
        name = key[len(SETTINGS_PREFIX):]
        try:
            rate = to_decimal(str(raw).strip()) if raw is not None else None
        except ValueError:
            rate = None
        if rate is None or not rate.is_finite() or rate <= 0:
            logger.warning("exchange_rate_setting_invalid", extra={
                "setting": key,
                "value": None if raw is None else str(raw),
                "fallback": str(values[name]),
            })
            continue
        values[name] = rate

    rates = ExchangeRateSet(**values)
    logger.debug("exchange_rates_resolved", extra=rates.as_dict())
    return rates
