"""
Log Gateway Components.

Organized into domain-specific modules:
- core/       - Foundational components (constants, errors, config, connection)
- transport/  - Channels viewer clients connect through (standalone, attached)
- auth/       - Connection gate (authentication state and room membership)
- events/     - Envelope types and message router
- broadcast/  - Throttled broadcast buffer
- endpoints/  - Per-WebSocket session handler and mixins
- metrics/    - Counters exposed through the health endpoint
- data/       - Record hub and server filter store

All public symbols are re-exported here.
"""

# =============================================================================
# Core Components
# =============================================================================
from log_gateway.components.core.constants import (
    WSCloseCode,
    WSConstants,
    MessageType,
    MessageResult,
    SOCKET_ROOM,
    MSG_PING_PLAIN,
    MSG_PING_JSON,
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
from log_gateway.components.core.context import Connection, sanitize_log_data

# =============================================================================
# Transport
# =============================================================================
from log_gateway.components.transport import (
    Channel,
    StandaloneChannel,
    AttachedChannel,
    TransportHost,
)

# =============================================================================
# Auth, Events, Broadcast
# =============================================================================
from log_gateway.components.auth.gate import ConnectionGate, LoginResult
from log_gateway.components.events.types import Envelope, parse_envelope
from log_gateway.components.events.router import MessageRouter
from log_gateway.components.broadcast.throttle import Throttle
from log_gateway.components.broadcast.buffer import BroadcastBuffer

# =============================================================================
# Endpoints, Metrics, Data
# =============================================================================
from log_gateway.components.endpoints.base import GatewayEndpoint
from log_gateway.components.metrics.collector import MetricsCollector
from log_gateway.components.data.hub import RecordHub
from log_gateway.components.data.filters import InMemoryFilterStore

__all__ = [
    # Core
    "WSCloseCode",
    "WSConstants",
    "MessageType",
    "MessageResult",
    "SOCKET_ROOM",
    "MSG_PING_PLAIN",
    "MSG_PING_JSON",
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
    # Transport
    "Channel",
    "StandaloneChannel",
    "AttachedChannel",
    "TransportHost",
    # Auth, Events, Broadcast
    "ConnectionGate",
    "LoginResult",
    "Envelope",
    "parse_envelope",
    "MessageRouter",
    "Throttle",
    "BroadcastBuffer",
    # Endpoints, Metrics, Data
    "GatewayEndpoint",
    "MetricsCollector",
    "RecordHub",
    "InMemoryFilterStore",
]
