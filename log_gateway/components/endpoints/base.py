"""
Gateway WebSocket Endpoint.

Runs the session of one viewer client on any channel:

1. Reject if the channel was stopped in the meantime
2. Accept and create the Connection
3. Set the initial authentication state
4. Message loop (size check, heartbeat, decode, dispatch)
5. Unregister and release on disconnect
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import WebSocket, WebSocketDisconnect

from log_gateway.config.logging import get_logger
from log_gateway.config.settings import settings
from log_gateway.components.core.constants import WSCloseCode
from log_gateway.components.core.context import Connection, sanitize_log_data
from log_gateway.components.core.errors import MalformedEnvelopeError
from log_gateway.components.endpoints.mixins import (
    ConnectionLifecycleMixin,
    HeartbeatMixin,
    MessageValidationMixin,
)
from log_gateway.components.events.types import parse_envelope

if TYPE_CHECKING:
    from log_gateway.components.auth.gate import ConnectionGate
    from log_gateway.components.events.router import MessageRouter
    from log_gateway.components.metrics.collector import MetricsCollector
    from log_gateway.components.transport.base import Channel

logger = get_logger(__name__)


class GatewayEndpoint(
    MessageValidationMixin,
    HeartbeatMixin,
    ConnectionLifecycleMixin,
):
    """
    Session handler for one WebSocket.

    Every decoded envelope is dispatched as its own task on the connection:
    a login waiting on a slow authenticate predicate holds back only its
    own reply, and the other requests of the same client keep flowing.

    Usage:
        endpoint = GatewayEndpoint(websocket, channel, gate, router)
        await endpoint.run()
    """

    def __init__(
        self,
        websocket: WebSocket,
        channel: "Channel",
        gate: "ConnectionGate",
        router: "MessageRouter",
        metrics: "MetricsCollector | None" = None,
        receive_timeout: float | None = settings.ws_receive_timeout,
    ):
        """
        Initialize the endpoint handler.

        Args:
            websocket: The WebSocket connection.
            channel: Channel the client connected through.
            gate: Authentication state machine.
            router: Inbound message router.
            metrics: Optional counters.
            receive_timeout: Seconds to wait for a frame, None waits forever.
        """
        self.websocket = websocket
        self.channel = channel
        self.gate = gate
        self.router = router
        self.metrics = metrics
        self.receive_timeout = receive_timeout

        self.connection: Connection | None = None
        self._is_running = False

    async def run(self) -> None:
        """Main entry point - handles the complete session lifecycle."""
        if not self.channel.is_active:
            self.log_connect_rejected("channel_inactive")
            if self.metrics is not None:
                self.metrics.increment_connections_rejected_inactive()
            await self.websocket.close(code=WSCloseCode.GOING_AWAY)
            return

        await self.websocket.accept()

        self.connection = Connection(self.websocket, self.channel.kind, metrics=self.metrics)
        self.channel.register(self.connection)
        self.gate.on_connect(self.connection)
        self.connection.start_writer()
        if self.metrics is not None:
            self.metrics.increment_connections_accepted()
        self.log_connect()

        self._is_running = True
        try:
            await self._message_loop()
        except WebSocketDisconnect as e:
            self.log_disconnect("client_disconnect", code=e.code)
        except RuntimeError as e:
            # Socket closed by the gateway while waiting for a frame
            self.log_disconnect("closed", error=str(e))
        finally:
            self._is_running = False
            self.channel.unregister(self.connection)
            await self.connection.release()
            if self.metrics is not None:
                self.metrics.increment_connections_closed()

    async def _message_loop(self) -> None:
        while self._is_running and not self.connection.is_closed:
            data = await self._receive_with_timeout()
            if data is None:
                logger.info(
                    "Connection timed out (no messages)",
                    channel=self.channel.kind,
                    connection_id=self.connection.connection_id,
                    timeout=self.receive_timeout,
                )
                if self.metrics is not None:
                    self.metrics.increment_connection_timeouts()
                await self.connection.close(WSCloseCode.NORMAL, "Connection timeout")
                break

            if self.metrics is not None:
                self.metrics.increment_messages_received()

            if not await self.validate_message_size(data):
                break

            if self.handle_heartbeat(data):
                continue

            await self.handle_message(data)

    async def _receive_with_timeout(self) -> str | None:
        """
        Receive one text frame.

        Returns:
            Frame text, "" for binary frames, or None on timeout.

        Raises:
            WebSocketDisconnect: The client went away.
        """
        try:
            if self.receive_timeout is None:
                message = await self.websocket.receive()
            else:
                message = await asyncio.wait_for(
                    self.websocket.receive(),
                    timeout=self.receive_timeout,
                )
        except asyncio.TimeoutError:
            return None

        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", WSCloseCode.NORMAL))
        text = message.get("text")
        # Binary frames are not part of the protocol; decoded as malformed
        return text if text is not None else ""

    async def handle_message(self, data: str) -> None:
        """Decode one frame and dispatch it; malformed frames are dropped."""
        try:
            envelope = parse_envelope(data)
        except MalformedEnvelopeError as e:
            if self.metrics is not None:
                self.metrics.increment_malformed_messages()
            logger.warning(
                "Malformed message dropped",
                channel=self.channel.kind,
                connection_id=self.connection.connection_id,
                message=sanitize_log_data(data),
                error=str(e),
            )
            return

        self.connection.create_task(self.router.dispatch(self.connection, envelope))
