"""
Transport Host.

Owns the zero, one or two channels viewer clients connect through and fans
broadcasts out over all of them. A channel that failed to start is dropped
and never retried; broadcasting with no channel is a no-op.
"""

from __future__ import annotations

from typing import Any, Callable

from log_gateway.config.logging import get_logger
from log_gateway.components.transport.attached import AttachedChannel
from log_gateway.components.transport.base import Channel, ConnectionHandler
from log_gateway.components.transport.standalone import StandaloneChannel

logger = get_logger(__name__)


class TransportHost:
    """
    Usage:
        transport = TransportHost(on_connection, namespace="/ws/logs")
        await transport.start_standalone(8090)
        await transport.attach_to_external_host(socket_host=app)
        transport.broadcast_to_room("authenticated", {"type": "RECORDS", "data": []})
        await transport.stop()
    """

    def __init__(
        self,
        on_connection: ConnectionHandler,
        namespace: str,
        host: str = "0.0.0.0",
        stats_provider: Callable[[], dict[str, Any]] | None = None,
    ) -> None:
        self._on_connection = on_connection
        self.namespace = namespace
        self.host = host
        self._stats_provider = stats_provider
        self.standalone: StandaloneChannel | None = None
        self.attached: AttachedChannel | None = None

    @property
    def channels(self) -> list[Channel]:
        """Channels that started successfully and have not been stopped."""
        return [
            channel
            for channel in (self.standalone, self.attached)
            if channel is not None and channel.is_active
        ]

    @property
    def connection_count(self) -> int:
        return sum(channel.connection_count for channel in self.channels)

    async def start_standalone(self, port: int | None) -> bool:
        """
        Start the owned listener. A None port means no standalone channel.

        Returns:
            True if the channel is serving.
        """
        if port is None:
            return False
        if self.standalone is not None:
            return self.standalone.is_active
        channel = StandaloneChannel(
            self.namespace,
            self._on_connection,
            port=port,
            host=self.host,
            stats_provider=self._stats_provider,
        )
        if not await channel.start():
            return False
        self.standalone = channel
        return True

    async def attach_to_external_host(self, socket_host: Any = None, http_host: Any = None) -> bool:
        """
        Attach a sub-channel to a host application.

        Returns:
            True if the channel is serving.
        """
        if socket_host is None and http_host is None:
            return False
        if self.attached is not None:
            return self.attached.is_active
        channel = AttachedChannel(
            self.namespace,
            self._on_connection,
            socket_host=socket_host,
            http_host=http_host,
        )
        if not await channel.start():
            return False
        self.attached = channel
        return True

    def broadcast_to_room(self, room: str, envelope: dict[str, Any]) -> int:
        """Queue an envelope for every room member on every active channel."""
        return sum(channel.broadcast_to_room(room, envelope) for channel in self.channels)

    async def stop(self) -> None:
        """Stop every channel. Safe to call repeatedly."""
        standalone, attached = self.standalone, self.attached
        self.standalone = None
        self.attached = None
        for channel in (standalone, attached):
            if channel is None:
                continue
            try:
                await channel.stop()
            except Exception as e:
                logger.error(
                    "Error stopping channel",
                    channel=channel.kind,
                    error=str(e),
                    exc_info=e,
                )

    def get_stats(self) -> dict[str, Any]:
        return {
            "channels": [channel.get_stats() for channel in self.channels],
            "connections": self.connection_count,
        }
