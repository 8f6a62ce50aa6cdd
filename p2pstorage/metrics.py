"""Thread-safe request and failure counters."""

from __future__ import annotations

import threading
from datetime import timedelta
from typing import Any


class Metrics:
    """Counts requests, failures and accumulated latency."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.requests_total = 0
        self.failures_total = 0
        self.total_latency = timedelta(0)
        self.request_count = 0

    def record_request(self, latency: timedelta) -> None:
        with self._lock:
            self.requests_total += 1
            self.total_latency += latency
            self.request_count += 1

    def record_failure(self) -> None:
        with self._lock:
            self.failures_total += 1

    def snapshot(self) -> dict[str, Any]:
        """Return a point-in-time copy of the counters and the average latency."""
        with self._lock:
            avg = (
                self.total_latency // self.request_count
                if self.request_count
                else timedelta(0)
            )
            return {
                "requests_total": self.requests_total,
                "failures_total": self.failures_total,
                "avg_latency": avg,
            }