"""
Channel interface.

A channel is one way for viewer clients to reach the gateway: a listener the
gateway owns (StandaloneChannel) or a route on a host application
(AttachedChannel). Both hand every accepted WebSocket to the same
on_connection callback, so authentication and routing are written once
against this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from fastapi import WebSocket

from log_gateway.config.logging import get_logger
from log_gateway.components.core.constants import WSCloseCode
from log_gateway.components.core.context import Connection

logger = get_logger(__name__)

ConnectionHandler = Callable[[WebSocket, "Channel"], Awaitable[None]]


class Channel(ABC):
    """
    Base class for channels.

    Subclasses implement start() and stop(). A channel only delivers
    broadcasts while active; connections registered on an inactive channel
    are ignored by broadcast_to_room().
    """

    kind: str = "channel"

    def __init__(self, namespace: str, on_connection: ConnectionHandler) -> None:
        self.namespace = namespace
        self._on_connection = on_connection
        self._connections: set[Connection] = set()
        self._active = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(namespace={self.namespace!r}, active={self._active})"

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def connections(self) -> frozenset[Connection]:
        return frozenset(self._connections)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    @abstractmethod
    async def start(self) -> bool:
        """
        Start serving.

        Returns:
            True if the channel is now active. Failures are logged, never
            raised.
        """

    @abstractmethod
    async def stop(self) -> None:
        """Stop serving. Must be idempotent."""

    def register(self, connection: Connection) -> None:
        self._connections.add(connection)

    def unregister(self, connection: Connection) -> None:
        self._connections.discard(connection)

    def broadcast_to_room(self, room: str, envelope: dict[str, Any]) -> int:
        """
        Queue an envelope for every member of a room.

        Returns:
            Number of connections the envelope was queued for.
        """
        if not self._active:
            return 0
        sent = 0
        for connection in list(self._connections):
            if connection.in_room(room) and connection.send(envelope):
                sent += 1
        return sent

    def make_endpoint(self) -> Callable[[WebSocket], Awaitable[None]]:
        """WebSocket route handler bound to this channel."""

        async def log_gateway_websocket(websocket: WebSocket) -> None:
            await self._on_connection(websocket, self)

        return log_gateway_websocket

    async def close_connections(self, code: int = WSCloseCode.GOING_AWAY, reason: str = "") -> int:
        """Close every live connection on this channel."""
        connections = list(self._connections)
        for connection in connections:
            await connection.close(code=code, reason=reason)
        return len(connections)

    def get_stats(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "active": self._active,
            "connections": len(self._connections),
        }
