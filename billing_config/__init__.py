"""
billing_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files directly.  Returns a frozen ``EngineConfig``.

Architecture position:
    Configuration -- YAML-driven, validated at load time.
    This package sits above ``billing_kernel`` / ``billing_engines`` and
    below ``billing_services``.  The kernel and engines MUST NEVER import
    from ``billing_config``.

Invariants enforced:
    - Single entrypoint: runtime config flows through ``get_active_config()``.
    - Deterministic checksum: the same YAML always yields the same
      ``EngineConfig.checksum``.

Failure modes:
    - ``ConfigurationError`` -- missing file, malformed YAML, unsupported
      currency code, or an invalid exchange rate.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``BILLING_CONFIG_TRACE`` log entry with the source path, checksum and
    resolved rates, tying every computed figure to the configuration that
    governed it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from billing_config.exchange_page import parse_paysera_rate
from billing_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_engine_config,
    rates_from_settings,
)
from billing_config.schema import EngineConfig

_logger = logging.getLogger("billing_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> EngineConfig:
    """The ONLY public configuration entrypoint.

    Guarantees:
        - The returned ``EngineConfig`` carries validated currencies and
          positive, finite exchange rates.
        - A ``BILLING_CONFIG_TRACE`` log entry is emitted on every
          successful call.

    Non-goals:
        - No caching; services hold the returned config themselves.

    Args:
        config_path: Override path to the YAML file.  Defaults to the
            packaged ``defaults.yaml``.

    Raises:
        ConfigurationError: If the file cannot be read or is invalid.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    data = load_yaml_file(path)
    config = parse_engine_config(data, source=str(path))

    _logger.info(
        "BILLING_CONFIG_TRACE",
        extra={
            "trace_type": "BILLING_CONFIG_TRACE",
            "source": config.source,
            "checksum": config.checksum,
            "strict_currency": config.strict_currency,
            "display_currency": config.display_currency,
            "rates": config.rates.as_dict(),
            "tenant_count": len(config.tenant_currencies),
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "EngineConfig",
    "compute_checksum",
    "get_active_config",
    "load_yaml_file",
    "parse_engine_config",
    "parse_paysera_rate",
    "rates_from_settings",
]
