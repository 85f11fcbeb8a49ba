"""
Monitoring package.

This package contains the Prometheus metrics and the health/status server.
"""

from hedgebot.monitoring.metrics import HealthChecker, route, start_metrics_server
from hedgebot.monitoring.metrics_rich import RichMetrics

__all__ = [
    "HealthChecker",
    "RichMetrics",
    "route",
    "start_metrics_server",
]
