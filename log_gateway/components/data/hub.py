"""
Record hub.

The hub is the authoritative source of log records. The gateway only needs
two operations from it: emit() to ingest records uploaded by clients, and
get_buffered_records() to piggyback the backlog onto a successful login.

RecordHub is an in-memory implementation for running the gateway without an
external pipeline: it keeps a bounded backlog and fans every record out to
its listeners (typically a LogGateway).
"""

from __future__ import annotations

from collections import deque
from typing import Any, Mapping, Protocol

from log_gateway.config.logging import get_logger
from log_gateway.config.settings import settings

logger = get_logger(__name__)

Record = Mapping[str, Any]


class Hub(Protocol):
    """Interface the gateway consumes."""

    def emit(self, record: Record) -> None: ...

    def get_buffered_records(self) -> list[Record]: ...


class RecordListener(Protocol):
    """Anything with a process(record) method, e.g. LogGateway."""

    def process(self, record: Record) -> None: ...


class RecordHub:
    """
    In-memory hub with a bounded backlog.

    Usage:
        hub = RecordHub(buffer_size=500)
        gateway = create_gateway({"port": 8090}, hub=hub)
        hub.add_listener(gateway)
        hub.emit({"src": "main", "level": 30, "msg": "hello"})
    """

    def __init__(self, buffer_size: int | None = None) -> None:
        size = buffer_size if buffer_size is not None else settings.hub_buffer_size
        if size <= 0:
            raise ValueError("buffer_size must be positive")
        self._buffer: deque[Record] = deque(maxlen=size)
        self._listeners: list[RecordListener] = []

    @property
    def buffer_size(self) -> int:
        return self._buffer.maxlen or 0

    def add_listener(self, listener: RecordListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: RecordListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, record: Record) -> None:
        """
        Store a record in the backlog and hand it to every listener.

        A failing listener is logged and skipped; the rest still receive
        the record.
        """
        self._buffer.append(record)
        for listener in list(self._listeners):
            try:
                listener.process(record)
            except Exception as e:
                logger.error(
                    "Record listener failed",
                    listener=type(listener).__name__,
                    error=str(e),
                    exc_info=e,
                )

    def get_buffered_records(self) -> list[Record]:
        """Snapshot of the backlog, oldest first."""
        return list(self._buffer)

    def clear(self) -> None:
        self._buffer.clear()
