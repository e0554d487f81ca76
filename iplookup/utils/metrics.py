"""In-process lookup metrics.

Counters and timing summaries kept per client instance, so two clients with
different configurations never mix their numbers.
"""

from __future__ import annotations

import statistics
import threading
from collections import deque

# Minimum number of samples required for accurate p95 percentile calculation
_MIN_SAMPLES_FOR_P95 = 20

# Timing samples kept per metric; older samples are dropped
MAX_TIMING_SAMPLES = 1000


class LookupMetrics:
    """Thread-safe counters and timings for one lookup client."""

    def __init__(self, max_samples: int = MAX_TIMING_SAMPLES) -> None:
        self._lock = threading.Lock()
        self.max_samples = max_samples
        self._counters: dict[str, int] = {}
        self._timings: dict[str, deque[float]] = {}

    def incr(self, metric: str, amount: int = 1) -> None:
        """Increment a named counter by `amount`."""
        with self._lock:
            self._counters[metric] = self._counters.get(metric, 0) + int(amount)

    def timing(self, metric: str, value_ms: float) -> None:
        """Record a timing value (milliseconds); only the latest `max_samples` are kept."""
        with self._lock:
            samples = self._timings.get(metric)
            if samples is None:
                samples = self._timings[metric] = deque(maxlen=self.max_samples)
            samples.append(float(value_ms))

    def count(self, metric: str) -> int:
        """Return the current value of a counter (0 if never incremented)."""
        with self._lock:
            return self._counters.get(metric, 0)

    def snapshot(self) -> dict:
        """Return a snapshot of current counters and timing summaries."""
        with self._lock:
            counters = dict(self._counters)
            timings = {k: list(v) for k, v in self._timings.items()}

        timing_stats = {}
        for name, values in timings.items():
            if not values:
                continue
            timing_stats[name] = {
                "count": len(values),
                "min_ms": min(values),
                "max_ms": max(values),
                "mean_ms": statistics.mean(values),
                "p95_ms": statistics.quantiles(values, n=100)[94]
                if len(values) >= _MIN_SAMPLES_FOR_P95
                else max(values),
            }

        return {"counters": counters, "timings": timing_stats}

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timings.clear()
