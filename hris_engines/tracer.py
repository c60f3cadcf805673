"""
Engine call tracing (``HRIS_ENGINE_TRACE``).

``@traced_engine`` records, at debug level, which engine ran, its version,
how long it took and a short fingerprint of its monetary inputs.  Two runs
with the same fingerprint and rate version must produce the same payroll
line, which is how a disputed payslip is traced back to its inputs.

Only keyword arguments listed in ``fingerprint_fields`` are hashed; the rate
table is identified separately by its version and checksum.
"""

from __future__ import annotations

import functools
import hashlib
import time
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any

from hris_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

FINGERPRINT_LENGTH = 16


def _stable_repr(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Decimal):
        # 10000000 and 10000000.00 are the same salary
        return format(value.normalize(), "f")
    if isinstance(value, Mapping):
        return "{" + ",".join(
            f"{key}:{_stable_repr(value[key])}" for key in sorted(value, key=str)
        ) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_stable_repr(item) for item in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: Mapping[str, Any],
) -> str:
    """First ``FINGERPRINT_LENGTH`` hex chars of a SHA-256 over the named inputs.

    A field absent from ``kwargs`` hashes as ``null``.
    """
    canonical = "|".join(
        f"{name}={_stable_repr(kwargs.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorate an engine entry point so every call emits ``HRIS_ENGINE_TRACE``.

    The record is written only after the call returns; a call that raises
    emits nothing and the exception propagates unchanged.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 3)

            _logger.debug(
                "HRIS_ENGINE_TRACE",
                extra={
                    "trace_type": "HRIS_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "function": func.__qualname__,
                    "input_fingerprint": (
                        compute_input_fingerprint(fingerprint_fields, kwargs)
                        if fingerprint_fields else ""
                    ),
                    "duration_ms": elapsed_ms,
                },
            )
            return result

        return wrapper

    return decorator
