"""
Metrics Collector for the Log Gateway.

Centralizes counters for observability. Every counter is touched from the
event loop thread only, so plain increments are enough.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any


@dataclass
class BroadcastMetrics:
    """Metrics for RECORDS broadcasts."""
    flushes: int = 0
    records: int = 0
    recipients: int = 0
    send_failures: int = 0


@dataclass
class ConnectionMetrics:
    """Metrics for connection management."""
    accepted: int = 0
    closed: int = 0
    rejected_inactive: int = 0
    timeouts: int = 0
    oversized: int = 0


@dataclass
class MessageMetrics:
    """Metrics for inbound message processing."""
    received: int = 0
    malformed: int = 0
    unknown_type: int = 0
    logins_ok: int = 0
    logins_failed: int = 0
    records_uploaded: int = 0


class MetricsCollector:
    """
    Metrics collector for the Log Gateway.

    Usage:
        metrics = MetricsCollector()
        metrics.record_flush(records=3, recipients=2)
        stats = metrics.get_snapshot()
    """

    def __init__(self) -> None:
        self._broadcast = BroadcastMetrics()
        self._connection = ConnectionMetrics()
        self._message = MessageMetrics()

    # ==========================================================================
    # Broadcast Metrics
    # ==========================================================================

    def record_flush(self, records: int, recipients: int) -> None:
        """Count one flush and what it carried."""
        self._broadcast.flushes += 1
        self._broadcast.records += records
        self._broadcast.recipients += recipients

    def increment_send_failures(self) -> None:
        self._broadcast.send_failures += 1

    # ==========================================================================
    # Connection Metrics
    # ==========================================================================

    def increment_connections_accepted(self) -> None:
        self._connection.accepted += 1

    def increment_connections_closed(self) -> None:
        self._connection.closed += 1

    def increment_connections_rejected_inactive(self) -> None:
        """Connection arrived on a channel that was already stopped."""
        self._connection.rejected_inactive += 1

    def increment_connection_timeouts(self) -> None:
        self._connection.timeouts += 1

    def increment_oversized_messages(self) -> None:
        self._connection.oversized += 1

    # ==========================================================================
    # Message Metrics
    # ==========================================================================

    def increment_messages_received(self) -> None:
        self._message.received += 1

    def increment_malformed_messages(self) -> None:
        self._message.malformed += 1

    def increment_unknown_types(self) -> None:
        self._message.unknown_type += 1

    def increment_logins(self, success: bool) -> None:
        if success:
            self._message.logins_ok += 1
        else:
            self._message.logins_failed += 1

    def add_uploaded_records(self, count: int) -> None:
        self._message.records_uploaded += count

    # ==========================================================================
    # Snapshot
    # ==========================================================================

    def get_snapshot(self) -> dict[str, Any]:
        """Return a copy of every counter, grouped by area."""
        return {
            "broadcast": asdict(self._broadcast),
            "connections": asdict(self._connection),
            "messages": asdict(self._message),
        }

    def get_stats(self) -> dict[str, int]:
        """Flat view of the counters for health endpoints."""
        stats: dict[str, int] = {}
        for group, values in self.get_snapshot().items():
            for name, value in values.items():
                stats[f"{group}_{name}"] = value
        return stats

    def reset(self) -> None:
        self._broadcast = BroadcastMetrics()
        self._connection = ConnectionMetrics()
        self._message = MessageMetrics()
