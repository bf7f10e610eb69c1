"""
stock_engines.tracer -- ``@traced_engine``: one STOCK_ENGINE_TRACE line per call.

Each trace names the engine and its version, fingerprints the inputs
listed in ``fingerprint_fields``, and records how long the call took and
how many items it returned.  Two calls over the same ledger and the same
parameters produce the same fingerprint, which is how a report can be
tied back to the inputs that produced it.

Engines traced this way take keyword-only arguments, so every
fingerprinted input is visible to the wrapper.  A fingerprinted input
passed as an iterator (a generator, say) is collected into a tuple first,
and the engine receives that tuple.

Usage:
    @traced_engine("lot_cost", "1.0", fingerprint_fields=("movements", "policy"))
    def resolve_lot_costs(*, movements, policy=ArrivalYearPolicy.FIRST_SEEN):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import time
from collections.abc import Callable, Iterable, Iterator, Mapping, Sized
from datetime import date
from enum import Enum
from typing import Any

from stock_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")


def _canonical(value: Any) -> str:
    """Stable text for a fingerprinted value."""
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        # movement records, criteria: field by field, declaration order
        inner = ",".join(
            f"{f.name}={_canonical(getattr(value, f.name))}" for f in dataclasses.fields(value)
        )
        return f"{type(value).__name__}({inner})"
    if isinstance(value, Mapping):
        pairs = sorted((_canonical(k), _canonical(v)) for k, v in value.items())
        return "{" + ",".join(f"{k}:{v}" for k, v in pairs) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonical(v) for v in value) + "]"
    if isinstance(value, (set, frozenset)):
        return "{" + ",".join(sorted(_canonical(v) for v in value)) + "}"
    if isinstance(value, Iterator):
        raise TypeError(f"cannot fingerprint a one-shot iterator ({type(value).__name__})")
    if isinstance(value, Iterable):
        return "[" + ",".join(_canonical(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """
    First 16 hex chars of the SHA-256 of the named inputs. Absent inputs count as None.

    Raises:
        TypeError: If an input is an iterator; collect it into a tuple first.
    """
    canonical = "|".join(f"{name}={_canonical(kwargs.get(name))}" for name in fingerprint_fields)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for name in fingerprint_fields:
                # one-shot iterators are read once, here, for both uses
                if isinstance(kwargs.get(name), Iterator):
                    kwargs[name] = tuple(kwargs[name])
            fingerprint = (
                compute_input_fingerprint(fingerprint_fields, kwargs) if fingerprint_fields else ""
            )
            started = time.perf_counter()
            result = func(*args, **kwargs)
            _logger.info(
                "STOCK_ENGINE_TRACE",
                extra={
                    "trace_type": "STOCK_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fingerprint,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "result_size": len(result) if isinstance(result, Sized) else None,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
