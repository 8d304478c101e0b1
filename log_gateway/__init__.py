"""
Log Gateway.

Broadcasts log records to viewer clients over WebSockets, on a listener of
its own and/or as a route on a host FastAPI/Starlette application.
"""

from log_gateway.gateway import LogGateway, create_gateway
from log_gateway.components.core.config import GatewayConfig, build_config
from log_gateway.components.data.hub import RecordHub
from log_gateway.components.data.filters import InMemoryFilterStore

__version__ = "1.0.0"

__all__ = [
    "LogGateway",
    "create_gateway",
    "GatewayConfig",
    "build_config",
    "RecordHub",
    "InMemoryFilterStore",
]
