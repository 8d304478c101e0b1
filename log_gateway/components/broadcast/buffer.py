"""
Broadcast Buffer.

Accumulates records between flushes and sends them to the authenticated room
as a single RECORDS envelope. Flushes are requested through a Throttle, so
bursts of records are coalesced into at most one envelope per interval.
"""

from __future__ import annotations

from typing import Any, Protocol, TYPE_CHECKING

from log_gateway.config.logging import get_logger
from log_gateway.components.broadcast.throttle import Scheduler, Throttle
from log_gateway.components.core.constants import SOCKET_ROOM
from log_gateway.components.events.types import records_message

if TYPE_CHECKING:
    from log_gateway.components.metrics.collector import MetricsCollector

logger = get_logger(__name__)


class RoomBroadcaster(Protocol):
    """What the buffer needs from TransportHost."""

    def broadcast_to_room(self, room: str, envelope: dict[str, Any]) -> int: ...


class BroadcastBuffer:
    """
    Ordered, unbounded buffer of records awaiting broadcast.

    Records are never dropped or reordered here; backpressure belongs to the
    upstream hub. flush() swaps the pending list out before sending, so the
    envelope always carries every record added up to the moment the flush
    runs, including flushes fired by the throttle timer.

    An empty flush still sends `{"type": "RECORDS", "data": []}`.
    """

    def __init__(
        self,
        transport: RoomBroadcaster,
        throttle_interval_ms: int = 0,
        loop: Scheduler | None = None,
        metrics: "MetricsCollector | None" = None,
    ) -> None:
        self._transport = transport
        self._records: list[Any] = []
        self._metrics = metrics
        self._flush_count = 0
        self._throttled_flush = Throttle(self.flush, throttle_interval_ms, loop=loop)

    @property
    def pending_count(self) -> int:
        return len(self._records)

    @property
    def flush_count(self) -> int:
        return self._flush_count

    @property
    def throttle(self) -> Throttle:
        return self._throttled_flush

    def add_record(self, record: Any) -> None:
        self._records.append(record)

    def request_flush(self) -> None:
        """Flush now or at the end of the current throttle window."""
        self._throttled_flush()

    def flush(self) -> int:
        """
        Broadcast every pending record and empty the buffer.

        Returns:
            Number of connections the envelope was queued for.
        """
        records, self._records = self._records, []
        recipients = self._transport.broadcast_to_room(SOCKET_ROOM, records_message(records))
        self._flush_count += 1
        if self._metrics is not None:
            self._metrics.record_flush(len(records), recipients)
        logger.debug("Flushed records", records=len(records), recipients=recipients)
        return recipients

    def get_stats(self) -> dict[str, int]:
        return {
            "pending_records": self.pending_count,
            "flushes": self._flush_count,
        }
