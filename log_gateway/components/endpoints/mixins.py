"""
Gateway Endpoint Mixins.

Each mixin handles a single concern for the gateway WebSocket endpoint.

Mixins:
    MessageValidationMixin: Inbound frame size checks
    HeartbeatMixin: ping/pong keepalive
    ConnectionLifecycleMixin: Connect/disconnect logging
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from fastapi import WebSocket

from log_gateway.config.logging import get_logger
from log_gateway.config.settings import settings
from log_gateway.components.core.constants import (
    MSG_PING_JSON,
    MSG_PING_PLAIN,
    WSCloseCode,
)

if TYPE_CHECKING:
    from log_gateway.components.core.context import Connection
    from log_gateway.components.metrics.collector import MetricsCollector
    from log_gateway.components.transport.base import Channel

logger = get_logger(__name__)

PONG: dict[str, Any] = {"type": "pong"}


# =============================================================================
# Protocols for mixin dependencies
# =============================================================================


class HasWebSocket(Protocol):
    """Protocol for classes with websocket attribute."""

    websocket: WebSocket
    channel: "Channel"
    connection: "Connection | None"
    metrics: "MetricsCollector | None"


def _connection_id(endpoint: HasWebSocket) -> int | str:
    return endpoint.connection.connection_id if endpoint.connection else "unknown"


# =============================================================================
# MessageValidationMixin
# =============================================================================


class MessageValidationMixin:
    """
    Mixin for inbound frame validation.

    Requires:
        - self.websocket: WebSocket
        - self.channel: Channel
        - self.connection: Connection | None
    """

    max_message_size: int = settings.ws_max_message_size

    async def validate_message_size(self: HasWebSocket, data: str) -> bool:
        """
        Validate message size against configured limit.

        Returns:
            True if valid, False if too large (connection closed).
        """
        max_size = getattr(self, "max_message_size", settings.ws_max_message_size)

        if len(data) > max_size:
            logger.warning(
                "Message size exceeded limit",
                channel=self.channel.kind,
                connection_id=_connection_id(self),
                size=len(data),
                max_size=max_size,
            )
            if self.metrics is not None:
                self.metrics.increment_oversized_messages()
            if self.connection is not None:
                await self.connection.close(
                    code=WSCloseCode.MESSAGE_TOO_BIG,
                    reason="Message too large",
                )
            return False
        return True


# =============================================================================
# HeartbeatMixin
# =============================================================================


class HeartbeatMixin:
    """
    Mixin for ping/pong keepalive.

    Pongs are queued on the connection like any other reply, so they keep
    their place relative to RECORDS broadcasts.
    """

    def handle_heartbeat(self: HasWebSocket, data: str) -> bool:
        """
        Answer plain text or JSON pings.

        Returns:
            True if the frame was a heartbeat and was handled.
        """
        if data == MSG_PING_PLAIN or data == MSG_PING_JSON:
            if self.connection is not None:
                self.connection.send(PONG)
            return True
        return False


# =============================================================================
# ConnectionLifecycleMixin
# =============================================================================


class ConnectionLifecycleMixin:
    """
    Mixin for connection lifecycle logging.

    Requires:
        - self.channel: Channel
        - self.connection: Connection | None
    """

    def log_connect(self: HasWebSocket) -> None:
        """Log connection event."""
        logger.info(
            "Log viewer connected",
            channel=self.channel.kind,
            connection_id=_connection_id(self),
            authenticated=self.connection.authenticated if self.connection else False,
        )

    def log_disconnect(self: HasWebSocket, reason: str = "client_disconnect", **extra: Any) -> None:
        """Log disconnection event."""
        logger.info(
            "Log viewer disconnected",
            channel=self.channel.kind,
            connection_id=_connection_id(self),
            reason=reason,
            **extra,
        )

    def log_connect_rejected(self: HasWebSocket, reason: str) -> None:
        """Log connection rejection event."""
        logger.warning(
            "Connection rejected",
            channel=self.channel.kind,
            reason=reason,
        )


__all__ = [
    "MessageValidationMixin",
    "HeartbeatMixin",
    "ConnectionLifecycleMixin",
    "HasWebSocket",
    "PONG",
]
