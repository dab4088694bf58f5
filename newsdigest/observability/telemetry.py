"""
In-process telemetry: structured events, counters and latency samples.

There is no metrics backend. Events are log lines on ``newsdigest.telemetry``;
counters and latencies are kept in memory, exposed through ``snapshot()`` on
the health endpoint, and asserted on in tests.
"""

from __future__ import annotations

import contextlib
import threading
import time
from collections import defaultdict
from collections.abc import Iterator
from typing import Any

from newsdigest.observability.logging import get_logger

logger = get_logger("newsdigest.telemetry")

# Latency samples kept per metric; older ones are dropped
MAX_SAMPLES = 500

_lock = threading.Lock()
_counters: defaultdict[str, int] = defaultdict(int)
_latencies: defaultdict[str, list[float]] = defaultdict(list)


def _latency_key(metric_name: str) -> str:
    return metric_name if metric_name.endswith("_ms") else f"{metric_name}_ms"


def log_event(event_name: str, **fields: Any) -> None:
    """Structured info-level event. Callers redact emails and user ids first."""
    rendered = " ".join(f"{key}={value!r}" for key, value in sorted(fields.items()))
    logger.info("event=%s %s", event_name, rendered)


def counter(name: str, increment: int = 1) -> int:
    with _lock:
        _counters[name] += increment
        value = _counters[name]
    logger.debug("counter=%s value=%s", name, value)
    return value


def get_counter(name: str) -> int:
    with _lock:
        return _counters.get(name, 0)


@contextlib.contextmanager
def time_block(metric_name: str) -> Iterator[None]:
    """Record the wall time of the block, in milliseconds, under ``<metric>_ms``."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        key = _latency_key(metric_name)
        with _lock:
            samples = _latencies[key]
            samples.append(elapsed_ms)
            if len(samples) > MAX_SAMPLES:
                del samples[: len(samples) - MAX_SAMPLES]
        logger.debug("timing=%s ms=%.2f", key, elapsed_ms)


def get_latency_stats(metric_name: str) -> dict[str, float]:
    """count/min/max/avg/p50/p95 in milliseconds (all zero when unsampled)."""
    with _lock:
        samples = sorted(_latencies.get(_latency_key(metric_name), []))

    if not samples:
        return {"count": 0, "min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p95": 0.0}

    count = len(samples)
    return {
        "count": count,
        "min": samples[0],
        "max": samples[-1],
        "avg": sum(samples) / count,
        "p50": samples[int(count * 0.50)],
        "p95": samples[min(int(count * 0.95), count - 1)],
    }


def snapshot() -> dict[str, Any]:
    """Point-in-time copy of every counter plus p50/p95 per latency metric."""
    with _lock:
        counters = dict(_counters)
        names = list(_latencies)
    latencies = {}
    for name in names:
        stats = get_latency_stats(name)
        latencies[name] = {"count": stats["count"], "p50": stats["p50"], "p95": stats["p95"]}
    return {"counters": counters, "latency_ms": latencies}


def reset_telemetry() -> None:
    """Clear counters and latency samples (tests)."""
    with _lock:
        _counters.clear()
        _latencies.clear()
