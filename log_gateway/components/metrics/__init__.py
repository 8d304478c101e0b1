"""
Metrics components.
"""

from log_gateway.components.metrics.collector import (
    MetricsCollector,
    BroadcastMetrics,
    ConnectionMetrics,
    MessageMetrics,
)

__all__ = [
    "MetricsCollector",
    "BroadcastMetrics",
    "ConnectionMetrics",
    "MessageMetrics",
]
