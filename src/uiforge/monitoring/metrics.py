"""
Metrics Collection
Prometheus metrics for tree ingest and editing
"""

import time
from contextlib import contextmanager
from typing import Callable, Iterator

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, generate_latest


class MetricsCollector:
    """
    Collects and exposes Prometheus metrics for the engine.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.registry = registry

        # Ingest metrics
        self.records_total = Counter(
            "uiforge_records_total",
            "Streamed node records by outcome",
            ["outcome"],
            registry=registry,
        )
        self.rebuild_duration = Histogram(
            "uiforge_rebuild_duration_seconds",
            "Full tree re-derivation duration in seconds",
            buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1],
            registry=registry,
        )
        self.passes_total = Counter(
            "uiforge_passes_total",
            "Generation and refinement passes",
            ["kind", "status"],
            registry=registry,
        )

        # Editing metrics
        self.edits_total = Counter(
            "uiforge_edits_total",
            "Editor operations by outcome",
            ["operation", "outcome"],
            registry=registry,
        )
        self.history_depth = Gauge(
            "uiforge_history_depth",
            "Snapshots held by the most recently updated history",
            registry=registry,
        )

    def record_ingest(self, outcome: str) -> None:
        """Record an accepted or skipped record."""
        self.records_total.labels(outcome=outcome).inc()

    def record_rebuild(self, duration: float) -> None:
        """Record a re-derivation."""
        self.rebuild_duration.observe(duration)

    def record_pass(self, kind: str, status: str) -> None:
        """Record the end of a generation or refinement pass."""
        self.passes_total.labels(kind=kind, status=status).inc()

    def record_edit(self, operation: str, applied: bool) -> None:
        """Record a patch/move that was applied or rejected."""
        self.edits_total.labels(operation=operation, outcome="applied" if applied else "rejected").inc()

    def set_history_depth(self, depth: int) -> None:
        self.history_depth.set(depth)

    @contextmanager
    def measure_duration(self, callback: Callable[[float], None]) -> Iterator[None]:
        """Context manager to measure operation duration."""
        start = time.perf_counter()
        try:
            yield
        finally:
            callback(time.perf_counter() - start)

    def get_metrics(self) -> bytes:
        """Get metrics in Prometheus format."""
        return generate_latest(self.registry)


# Global metrics collector instance
metrics_collector = MetricsCollector()
