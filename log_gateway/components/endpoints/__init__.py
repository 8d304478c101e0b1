"""
WebSocket endpoint components.
"""

from log_gateway.components.endpoints.base import GatewayEndpoint
from log_gateway.components.endpoints.mixins import (
    MessageValidationMixin,
    HeartbeatMixin,
    ConnectionLifecycleMixin,
)

__all__ = [
    "GatewayEndpoint",
    "MessageValidationMixin",
    "HeartbeatMixin",
    "ConnectionLifecycleMixin",
]
