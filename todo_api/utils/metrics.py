"""
Metrics Collection for the recurrence engine.

Counts materialized instances, skipped duplicates, failures and sweep runs.
"""

import threading
import time
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict


class MetricsCollector:
    """Collects and manages counters and timers."""

    def __init__(self):
        """Initialize metrics collector."""
        self.metrics = defaultdict(int)
        self.timers = defaultdict(float)
        self.lock = threading.Lock()

        # Initialize counters
        self.metrics["recurring_instances_created_total"] = 0
        self.metrics["recurring_duplicates_skipped_total"] = 0
        self.metrics["recurring_errors_total"] = 0
        self.metrics["recurrence_sweeps_total"] = 0

    def increment_counter(self, metric_name: str, value: int = 1):
        """Increment a counter metric."""
        with self.lock:
            self.metrics[metric_name] += value

    def record_timer(self, metric_name: str, duration: float):
        """Record a timing metric."""
        with self.lock:
            self.timers[metric_name] += duration

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics values."""
        with self.lock:
            return {
                "counters": dict(self.metrics),
                "timers": dict(self.timers),
                "timestamp": datetime.utcnow().isoformat()
            }

    def reset(self):
        with self.lock:
            for name in list(self.metrics):
                self.metrics[name] = 0
            self.timers.clear()

    def instance_created(self):
        """Record that a recurring instance was created."""
        self.increment_counter("recurring_instances_created_total")

    def duplicate_skipped(self):
        """Record that a materialization hit an existing instance."""
        self.increment_counter("recurring_duplicates_skipped_total")

    def recurrence_error(self):
        """Record that materializing an instance failed."""
        self.increment_counter("recurring_errors_total")

    @contextmanager
    def time_operation(self, metric_name: str):
        """Context manager to time an operation, recorded even if it raises."""
        start_time = time.time()
        try:
            yield
        finally:
            self.record_timer(metric_name, time.time() - start_time)


# Default collector shared by the API process and the sweep job
metrics_collector = MetricsCollector()
