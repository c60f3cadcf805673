"""
Structured JSON logging for the HRIS payroll core.

Every record is rendered as one JSON object per line.  Request-scoped fields
(correlation, actor, company, period, employee) live in ``LogContext`` and
are stamped onto every record emitted while they are bound, so a single
payroll run can be followed across the engines, the aggregator and the
service without threading IDs through every call.

Loggers are namespaced under ``hris_kernel``::

    logger = get_logger("modules.payroll.service")
    with LogContext.bind(period_id=period.id, actor_id=actor_id):
        logger.info("payroll_period_processed", extra={"employee_count": 12})
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
from collections.abc import Mapping
from contextvars import ContextVar
from datetime import UTC, date, datetime
from types import MappingProxyType
from typing import Any

_LOGGER_PREFIX = "hris_kernel"

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_EMPTY: Mapping[str, str] = MappingProxyType({})

_context: ContextVar[Mapping[str, str]] = ContextVar("hris_log_context", default=_EMPTY)


class LogContext:
    """
    Request-scoped log fields, safe across threads and asyncio tasks.

    Only the names in ``FIELDS`` are carried; values are stored as strings.
    """

    FIELDS = ("correlation_id", "actor_id", "company_id", "period_id", "employee_id")

    @classmethod
    def merged(cls, values: Mapping[str, Any]) -> Mapping[str, str]:
        """Current fields overlaid with the known, non-None ``values``."""
        current = dict(_context.get())
        for name, value in values.items():
            if name in cls.FIELDS and value is not None:
                current[name] = str(value)
        return MappingProxyType(current)

    @classmethod
    def set(cls, **values: Any) -> None:
        """Overwrite the given fields; ``None`` values leave a field as is."""
        _context.set(cls.merged(values))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    def bind(cls, **values: Any) -> "_BoundContext":
        """Bind fields for the duration of a ``with`` block."""
        return _BoundContext(values)


class _BoundContext:

    def __init__(self, values: Mapping[str, Any]):
        self._values = values
        self._token = None

    def __enter__(self) -> type[LogContext]:
        self._token = _context.set(LogContext.merged(self._values))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        _context.reset(self._token)


# ---------------------------------------------------------------------------
# JSON rendering
# ---------------------------------------------------------------------------

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


class _PayloadEncoder(json.JSONEncoder):

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        # UUID, Decimal and anything else unknown
        return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # structured attributes of HrisKernelError subclasses
    for name, value in vars(exc).items():
        if not name.startswith("_") and name not in ("args", "code"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """
    Render a record as one JSON line.

    Key order: envelope (ts, level, logger, message), bound ``LogContext``
    fields, ``extra`` fields, then exception details.  A context field wins
    over an ``extra`` key of the same name.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_PayloadEncoder)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger ``hris_kernel.<name>``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_setup_lock = threading.Lock()
_is_configured = False


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``hris_kernel`` logger.

    Only the first call has an effect; later calls return immediately.
    Records do not propagate to the root logger.
    """
    global _is_configured
    with _setup_lock:
        if _is_configured:
            return
        _is_configured = True

    package_logger = logging.getLogger(_LOGGER_PREFIX)
    package_logger.setLevel(level)
    package_logger.propagate = False

    target = handler or logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    package_logger.addHandler(target)


def reset_logging() -> None:
    """Undo ``configure_logging``.  Tests only."""
    global _is_configured
    with _setup_lock:
        _is_configured = False
    package_logger = logging.getLogger(_LOGGER_PREFIX)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.WARNING)
