"""
Core components: constants, errors, configuration and connection state.
"""

from log_gateway.components.core.constants import (
    WSCloseCode,
    WSConstants,
    MessageType,
    MessageResult,
    SOCKET_ROOM,
    LOG_SRC,
)
from log_gateway.components.core.errors import (
    GatewayError,
    BindError,
    AuthError,
    GatewayConfigError,
    FilterConfigError,
    MalformedEnvelopeError,
)
from log_gateway.components.core.config import GatewayConfig, Authenticator, build_config
from log_gateway.components.core.context import Connection, sanitize_log_data, is_ws_connected

__all__ = [
    "WSCloseCode",
    "WSConstants",
    "MessageType",
    "MessageResult",
    "SOCKET_ROOM",
    "LOG_SRC",
    "GatewayError",
    "BindError",
    "AuthError",
    "GatewayConfigError",
    "FilterConfigError",
    "MalformedEnvelopeError",
    "GatewayConfig",
    "Authenticator",
    "build_config",
    "Connection",
    "sanitize_log_data",
    "is_ws_connected",
]
