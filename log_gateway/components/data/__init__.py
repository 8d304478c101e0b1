"""
Collaborators the gateway talks to: record hub and filter store.
"""

from log_gateway.components.data.hub import Hub, Record, RecordHub, RecordListener
from log_gateway.components.data.filters import FilterStore, InMemoryFilterStore

__all__ = [
    "Hub",
    "Record",
    "RecordHub",
    "RecordListener",
    "FilterStore",
    "InMemoryFilterStore",
]
