"""
Performance Monitoring
Prometheus-based metrics collection for ingest and editing
"""

from .metrics import MetricsCollector, metrics_collector

__all__ = [
    "MetricsCollector",
    "metrics_collector",
]
