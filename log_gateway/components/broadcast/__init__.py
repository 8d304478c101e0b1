"""
Broadcast components: throttle primitive and record buffer.
"""

from log_gateway.components.broadcast.throttle import Throttle, Scheduler
from log_gateway.components.broadcast.buffer import BroadcastBuffer, RoomBroadcaster

__all__ = [
    "Throttle",
    "Scheduler",
    "BroadcastBuffer",
    "RoomBroadcaster",
]
