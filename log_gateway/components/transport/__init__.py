"""
Transport components: channel interface, standalone and attached channels.
"""

from log_gateway.components.transport.base import Channel, ConnectionHandler
from log_gateway.components.transport.standalone import StandaloneChannel
from log_gateway.components.transport.attached import AttachedChannel, normalize_host
from log_gateway.components.transport.host import TransportHost

__all__ = [
    "Channel",
    "ConnectionHandler",
    "StandaloneChannel",
    "AttachedChannel",
    "normalize_host",
    "TransportHost",
]
