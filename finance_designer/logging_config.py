"""
Structured JSON logging for the voucher designer.

Every record leaves the ``finance_designer`` logger as one JSON line.  The
voucher code of the designer session that emitted it is attached from
``LogContext`` so a load / save pair can be correlated without threading
the code through every call.
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
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

_LOGGER_PREFIX = "finance_designer"


class LogContext:
    """Session-scoped log fields, safe across threads and tasks."""

    _voucher_code: ContextVar[str | None] = ContextVar(
        "designer_log_voucher_code", default=None
    )

    @classmethod
    def get_all(cls) -> dict[str, str]:
        voucher_code = cls._voucher_code.get()
        return {} if voucher_code is None else {"voucher_code": voucher_code}

    @classmethod
    def clear(cls) -> None:
        cls._voucher_code.set(None)

    @classmethod
    @contextmanager
    def bind(cls, *, voucher_code: str) -> Iterator[None]:
        """Attach ``voucher_code`` to records logged inside the block."""
        token = cls._voucher_code.set(voucher_code)
        try:
            yield
        finally:
            cls._voucher_code.reset(token)


_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())
        payload.update(
            (key, val) for key, val in vars(record).items()
            if key not in _STDLIB_KEYS and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            if hasattr(exc, "code"):
                payload["exc_code"] = exc.code
            # Structured fields of FinanceDesignerError subclasses
            for key, val in vars(exc).items():
                if not key.startswith("_") and key != "code":
                    payload[f"exc_{key}"] = val
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the finance_designer namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False


def configure_logging(
    *,
    level: int = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """Attach the JSON handler to the finance_designer logger once."""
    global _configured
    if _configured:
        return
    _configured = True

    designer_logger = logging.getLogger(_LOGGER_PREFIX)
    designer_logger.setLevel(level)
    designer_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(sys.stderr)
    h.setFormatter(StructuredFormatter())
    designer_logger.addHandler(h)


def reset_logging() -> None:
    """Undo ``configure_logging``.  Tests only."""
    global _configured
    _configured = False
    designer_logger = logging.getLogger(_LOGGER_PREFIX)
    designer_logger.handlers.clear()
    designer_logger.setLevel(logging.WARNING)
    designer_logger.propagate = True
