"""
Wire envelopes and inbound message routing.
"""

from log_gateway.components.events.types import (
    Envelope,
    parse_envelope,
    success,
    failure,
    records_message,
)
from log_gateway.components.events.router import MessageRouter, INVALID_FILTER

__all__ = [
    "Envelope",
    "parse_envelope",
    "success",
    "failure",
    "records_message",
    "MessageRouter",
    "INVALID_FILTER",
]
