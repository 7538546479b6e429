"""
Structured JSON logging for the billing packages.

Every record under the ``billing_kernel`` logger hierarchy is written as
one JSON object per line.  Engines put their numbers in ``extra`` (ratios,
amounts, currencies, period bounds); the formatter serializes ``Decimal``
as a string so no precision is lost in the log.

The tenant being valued is carried by ``LogContext`` and stamped on every
record emitted while it is bound::

    with LogContext.bind(tenant="ompleo"):
        logger.info("dashboard_computed", extra={"currency": "DZD"})
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

LOGGER_ROOT = "billing_kernel"


class LogContext:
    """Tenant currently being valued, propagated through contextvars."""

    _tenant: ContextVar[str | None] = ContextVar("billing_log_tenant", default=None)

    @classmethod
    def tenant(cls) -> str | None:
        return cls._tenant.get()

    @classmethod
    def fields(cls) -> dict[str, str]:
        """Context fields to merge into a log record (empty when unbound)."""
        tenant = cls._tenant.get()
        return {"tenant": tenant} if tenant is not None else {}

    @classmethod
    @contextmanager
    def bind(cls, tenant: str | None) -> Iterator[None]:
        """Bind ``tenant`` for the duration of the block; None leaves it as is."""
        if tenant is None:
            yield
            return
        token = cls._tenant.set(tenant)
        try:
            yield
        finally:
            cls._tenant.reset(token)

    @classmethod
    def clear(cls) -> None:
        cls._tenant.set(None)


# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRIBUTES: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.fields(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and key not in payload
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record))
        return json.dumps(payload, default=_json_default)

    def _exception_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        exc = record.exc_info[1]
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # Structured attributes of BillingKernelError subclasses (currency, pair, ...)
        fields.update(
            (f"exc_{name}", value)
            for name, value in vars(exc).items()
            if not name.startswith("_")
        )
        fields["traceback"] = self.formatException(record.exc_info)
        return fields


def get_logger(name: str) -> logging.Logger:
    """Logger named ``billing_kernel.<name>``."""
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")


_handler: logging.Handler | None = None
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach a JSON handler to the ``billing_kernel`` logger. Idempotent."""
    global _handler
    with _lock:
        if _handler is not None:
            return
        _handler = handler or logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(StructuredFormatter())
        root = logging.getLogger(LOGGER_ROOT)
        root.setLevel(level)
        root.propagate = False
        root.addHandler(_handler)


def reset_logging() -> None:
    """Detach the handler installed by configure_logging (tests only)."""
    global _handler
    with _lock:
        root = logging.getLogger(LOGGER_ROOT)
        if _handler is not None:
            root.removeHandler(_handler)
            _handler = None
        root.setLevel(logging.WARNING)
        root.propagate = True
