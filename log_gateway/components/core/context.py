"""
Per-client connection state.

A Connection wraps one accepted WebSocket and carries everything the gateway
tracks about that client: authentication flag, room membership and an ordered
outbound queue drained by a dedicated writer task.
"""

from __future__ import annotations

import asyncio
import itertools
import re
from typing import Any, Coroutine, TYPE_CHECKING

from starlette.websockets import WebSocketState

from log_gateway.config.logging import get_logger
from log_gateway.config.settings import settings
from log_gateway.components.core.constants import WSCloseCode, WSConstants

if TYPE_CHECKING:
    from fastapi import WebSocket
    from log_gateway.components.metrics.collector import MetricsCollector

logger = get_logger(__name__)


# Pattern to remove control characters and direction overrides from log data
_CONTROL_CHAR_PATTERN = re.compile(
    '[\x00-\x1f\x7f-\x9f'  # ASCII control characters
    '\u200b-\u200f'  # Zero-width and direction marks
    '\u202a-\u202e'  # Bidirectional text formatting
    '\u2066-\u2069'  # Isolate formatting characters
    '\ufeff]'  # BOM
)

_connection_ids = itertools.count(1)


def sanitize_log_data(data: Any, max_length: int = WSConstants.MAX_LOGGED_PAYLOAD) -> str:
    """
    Sanitize client-provided data before logging.

    Truncates first so escaping cannot push the output past max_length,
    then strips control characters and escapes quotes and backslashes.
    """
    text = data if isinstance(data, str) else repr(data)
    truncated = text[:max_length]
    sanitized = _CONTROL_CHAR_PATTERN.sub('', truncated)
    sanitized = sanitized.replace('\\', '\\\\').replace('"', '\\"')
    if len(text) > max_length:
        return sanitized + "..."
    return sanitized


def is_ws_connected(ws: "WebSocket") -> bool:
    """
    Check if WebSocket is in connected state before sending.

    Starlette does not expose transitional states, so a socket may still
    look connected for a moment after the peer started closing.
    """
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


class Connection:
    """
    Transient session for one viewer client.

    Owned by the channel that accepted it. ConnectionGate changes the
    authentication state through set_authenticated/join/leave only.

    Outbound messages go through send(), which never blocks: envelopes are
    queued and written in FIFO order by the writer task, so broadcasts and
    replies to the same client can never interleave out of order. The queue
    holds at most `max_pending` envelopes; a client that falls that far behind
    is treated like one whose send failed and gets nothing further.
    """

    def __init__(
        self,
        websocket: "WebSocket",
        channel: str,
        metrics: "MetricsCollector | None" = None,
        max_pending: int | None = None,
    ) -> None:
        if max_pending is None:
            max_pending = settings.ws_send_queue_size
        self.websocket = websocket
        self.channel = channel
        self.connection_id = next(_connection_ids)
        self.authenticated = False
        self.logout_count = 0
        self._rooms: set[str] = set()
        self._metrics = metrics
        self._outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=max_pending)
        self._writer: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    def __repr__(self) -> str:
        return (
            f"Connection(id={self.connection_id}, channel={self.channel!r}, "
            f"authenticated={self.authenticated})"
        )

    # =========================================================================
    # Authentication state and rooms
    # =========================================================================

    @property
    def rooms(self) -> frozenset[str]:
        """Rooms this connection currently belongs to."""
        return frozenset(self._rooms)

    def in_room(self, room: str) -> bool:
        return room in self._rooms

    def join(self, room: str) -> None:
        self._rooms.add(room)

    def leave(self, room: str) -> None:
        self._rooms.discard(room)

    def set_authenticated(self, value: bool) -> None:
        if not value:
            self.logout_count += 1
        self.authenticated = value

    # =========================================================================
    # Outbound queue
    # =========================================================================

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def pending_sends(self) -> int:
        """Envelopes queued but not yet written."""
        return self._outbox.qsize()

    def send(self, envelope: dict[str, Any]) -> bool:
        """
        Queue an envelope for this client.

        Returns:
            False if the envelope was dropped: the connection is closed, or its
            queue is full, which closes it.
        """
        if self._closed:
            return False
        try:
            self._outbox.put_nowait(envelope)
        except asyncio.QueueFull:
            self._mark_dead("send queue full")
            while not self._outbox.empty():
                self._outbox.get_nowait()
            return False
        return True

    def start_writer(self) -> asyncio.Task:
        """Start the task that writes queued envelopes to the socket."""
        if self._writer is None:
            self._writer = asyncio.create_task(
                self._writer_loop(),
                name=f"log_gateway_writer_{self.connection_id}",
            )
        return self._writer

    async def _writer_loop(self) -> None:
        while True:
            payload = await self._outbox.get()
            if not is_ws_connected(self.websocket):
                self._mark_dead("socket no longer connected")
                return
            try:
                await self.websocket.send_json(payload)
            except Exception as e:
                self._mark_dead(str(e))
                return

    def _mark_dead(self, reason: str) -> None:
        logger.debug(
            "Send failed, dropping connection output",
            connection_id=self.connection_id,
            channel=self.channel,
            reason=reason,
            dropped=self._outbox.qsize(),
        )
        self._closed = True
        if self._metrics is not None:
            self._metrics.increment_send_failures()

    # =========================================================================
    # Background work tied to the connection lifetime
    # =========================================================================

    def create_task(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """
        Run a coroutine for this connection.

        The task is cancelled if the client disconnects before it finishes.
        """
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Unhandled error while processing client message",
                connection_id=self.connection_id,
                channel=self.channel,
                error=str(exc),
                exc_info=exc,
            )

    async def close(self, code: int = WSCloseCode.NORMAL, reason: str = "") -> None:
        """Close the socket; later send() calls are dropped."""
        self._closed = True
        if self.websocket.application_state != WebSocketState.CONNECTED:
            return
        try:
            await self.websocket.close(code=code, reason=reason)
        except RuntimeError as e:
            # Peer already gone
            logger.debug(
                "Close on finished socket",
                connection_id=self.connection_id,
                error=str(e),
            )

    async def release(self) -> None:
        """Cancel the writer and any in-flight message tasks."""
        self._closed = True
        tasks = list(self._tasks)
        if self._writer is not None:
            tasks.append(self._writer)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._writer = None
