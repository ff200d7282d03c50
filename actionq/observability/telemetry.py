"""
In-process telemetry helpers for action execution.

Nothing is shipped to an external backend. Events go to the log as one line
each and counters/latencies are kept in memory so tests and the CLI report can
read them back.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger("actionq.telemetry")

_COUNTERS: dict[str, int] = {}
_LATENCIES: dict[str, list[float]] = {}


def log_event(event_name: str, **fields: Any) -> None:
    """
    Structured log event. Callers must not pass message bodies or credentials.

    Side Effects:
        - Writes to logger (info level)
    """
    logger.info("event=%s %s", event_name, fields)


def counter(name: str, increment: int = 1) -> int:
    """
    Increment an in-memory counter and return its new value.

    Side Effects:
        - Modifies _COUNTERS dict (in-memory state)
        - Writes to logger (debug level)
    """
    value = _COUNTERS.get(name, 0) + increment
    _COUNTERS[name] = value
    logger.debug("counter=%s value=%s", name, value)
    return value


def get_counter(name: str) -> int:
    return _COUNTERS.get(name, 0)


def snapshot_counters(prefix: str = "") -> dict[str, int]:
    """Copy of the counters whose name starts with prefix."""
    return {name: value for name, value in _COUNTERS.items() if name.startswith(prefix)}


@contextlib.contextmanager
def time_block(metric_name: str) -> Iterator[None]:
    """
    Record the wall time of the wrapped block under metric_name (seconds).

    Side Effects:
        - Appends to _LATENCIES dict (in-memory state)
        - Writes to logger (debug level) with timing
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.debug("timing=%s seconds=%.6f", metric_name, elapsed)
        _LATENCIES.setdefault(metric_name, []).append(elapsed)


def get_latencies(metric_name: str) -> list[float]:
    return list(_LATENCIES.get(metric_name, []))


def reset_telemetry() -> None:
    """
    Clear all counters and latencies (useful for tests).

    Side Effects:
        - Clears _COUNTERS and _LATENCIES (in-memory state)
    """
    _COUNTERS.clear()
    _LATENCIES.clear()
