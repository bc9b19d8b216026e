# Overview: Per-application performance metrics (constructed in create_app, never global).

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager


class PerformanceMonitor:
    """
    Collects named timings and counters.

    One instance lives in app.extensions["performance_monitor"]; tests build
    their own instances so metrics never leak between them.
    """

    def __init__(self, logger: logging.Logger | None = None, slow_threshold_ms: float = 500):
        self.logger = logger or logging.getLogger(__name__)
        self.slow_threshold_ms = slow_threshold_ms
        self._metrics: dict[str, float] = {}
        self._counts: dict[str, int] = {}
        self._lock = threading.Lock()

    def log_metric(self, name: str, value: float) -> None:
        with self._lock:
            self._metrics[name] = value
            self._counts[name] = self._counts.get(name, 0) + 1
        self.logger.debug("Performance metric - %s: %s", name, value)

    def get_metrics(self) -> dict:
        with self._lock:
            return {
                name: {"last": value, "count": self._counts.get(name, 0)}
                for name, value in self._metrics.items()
            }

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()
            self._counts.clear()

    @contextmanager
    def timed(self, name: str):
        """Record the block's wall time in milliseconds under name."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self.log_metric(name, round(elapsed_ms, 3))
            if elapsed_ms > self.slow_threshold_ms:
                self.logger.warning("Slow operation %s: %.1fms", name, elapsed_ms)


def get_monitor(app) -> PerformanceMonitor:
    return app.extensions["performance_monitor"]
