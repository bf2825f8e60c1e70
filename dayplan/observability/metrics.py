"""
Minimal metrics collection for observability.

Provides counters and timing metrics without external dependencies.
Metrics are printed by `dayplan daemon status` in Prometheus text format.
"""

import functools
import inspect
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass
class Counter:
    """Thread-safe counter metric."""

    name: str
    description: str
    _value: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def inc(self, amount: int = 1) -> None:
        """Increment the counter."""
        with self._lock:
            self._value += amount

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


@dataclass
class Gauge:
    """Thread-safe gauge metric."""

    name: str
    description: str
    _value: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def set(self, value: float) -> None:
        """Set the gauge value."""
        with self._lock:
            self._value = value

    @property
    def value(self) -> float:
        with self._lock:
            return self._value


@dataclass
class Histogram:
    """Simple histogram for timing metrics."""

    name: str
    description: str
    _values: list[float] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def observe(self, value: float) -> None:
        """Record an observation."""
        with self._lock:
            self._values.append(value)
            # Keep only last 1000 observations
            if len(self._values) > 1000:
                self._values = self._values[-1000:]

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._values)

    @property
    def sum(self) -> float:
        with self._lock:
            return sum(self._values) if self._values else 0.0

    @property
    def avg(self) -> float:
        with self._lock:
            return sum(self._values) / len(self._values) if self._values else 0.0


class MetricsRegistry:
    """Central registry for all metrics."""

    def __init__(self) -> None:
        self._counters: dict[str, Counter] = {}
        self._gauges: dict[str, Gauge] = {}
        self._histograms: dict[str, Histogram] = {}
        self._lock = threading.Lock()

    def counter(self, name: str, description: str = "") -> Counter:
        """Get or create a counter."""
        with self._lock:
            if name not in self._counters:
                self._counters[name] = Counter(name, description)
            return self._counters[name]

    def gauge(self, name: str, description: str = "") -> Gauge:
        """Get or create a gauge."""
        with self._lock:
            if name not in self._gauges:
                self._gauges[name] = Gauge(name, description)
            return self._gauges[name]

    def histogram(self, name: str, description: str = "") -> Histogram:
        """Get or create a histogram."""
        with self._lock:
            if name not in self._histograms:
                self._histograms[name] = Histogram(name, description)
            return self._histograms[name]

    def to_prometheus(self) -> str:
        """Export metrics in Prometheus text format."""
        lines: list[str] = []
        with self._lock:
            for name in sorted(self._counters):
                c = self._counters[name]
                if c.description:
                    lines.append(f"# HELP {name} {c.description}")
                lines.append(f"# TYPE {name} counter")
                lines.append(f"{name} {c.value}")

            for name in sorted(self._gauges):
                g = self._gauges[name]
                if g.description:
                    lines.append(f"# HELP {name} {g.description}")
                lines.append(f"# TYPE {name} gauge")
                lines.append(f"{name} {g.value}")

            for name in sorted(self._histograms):
                h = self._histograms[name]
                if h.description:
                    lines.append(f"# HELP {name} {h.description}")
                lines.append(f"# TYPE {name} summary")
                lines.append(f"{name}_count {h.count}")
                lines.append(f"{name}_sum {h.sum}")

        return "\n".join(lines) + "\n"

    def to_dict(self) -> dict[str, dict[str, float | int | str]]:
        """Export metrics as dictionary."""
        result: dict[str, dict[str, float | int | str]] = {}
        with self._lock:
            for name, c in self._counters.items():
                result[name] = {"type": "counter", "value": c.value}
            for name, g in self._gauges.items():
                result[name] = {"type": "gauge", "value": g.value}
            for name, h in self._histograms.items():
                result[name] = {"type": "histogram", "count": h.count, "sum": h.sum, "avg": h.avg}
        return result


# Global registry instance
REGISTRY = MetricsRegistry()

# Pre-defined metrics
block_mutations = REGISTRY.counter("block_mutations_total", "Structural block mutations (split/merge)")
boundary_adjustments = REGISTRY.counter(
    "boundary_adjustments_total", "Day boundary adjustments and regenerations"
)
transitions_run = REGISTRY.counter("transitions_run_total", "Day transition jobs executed")
transitions_skipped = REGISTRY.counter(
    "transitions_skipped_total", "Day transition jobs skipped (already ran today or nothing to do)"
)
transition_failures = REGISTRY.counter("transition_failures_total", "Day transition job failures")
last_transition_timestamp = REGISTRY.gauge(
    "last_transition_timestamp_seconds", "Unix time of the last completed day transition job"
)
store_reads = REGISTRY.counter("store_reads_total", "Key-value store reads")
store_writes = REGISTRY.counter("store_writes_total", "Key-value store writes and removals")
store_latency = REGISTRY.histogram("store_latency_seconds", "Key-value store call latency")


def timed(histogram: Histogram) -> Callable:
    """Decorator to time function execution. Works on plain and async functions."""

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                finally:
                    histogram.observe(time.perf_counter() - start)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                histogram.observe(time.perf_counter() - start)

        return wrapper

    return decorator
