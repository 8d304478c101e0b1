"""
Log Gateway Constants.

Centralized constants with documentation explaining the value of each one.
"""

from enum import IntEnum
from typing import Final

__all__ = [
    "WSCloseCode",
    "WSConstants",
    "MessageType",
    "MessageResult",
    "SOCKET_ROOM",
    "LOG_SRC",
    "MSG_PING_PLAIN",
    "MSG_PING_JSON",
]


class WSCloseCode(IntEnum):
    """
    WebSocket close codes used by the gateway.

    Standard codes (1000-1999) from RFC 6455.
    """

    NORMAL = 1000  # Normal closure
    GOING_AWAY = 1001  # Gateway tearing down or channel detached
    MESSAGE_TOO_BIG = 1009  # Message too large to process


class WSConstants:
    """
    Log Gateway operational constants.

    Values that operators may need to change live in Settings instead
    (port, namespace, throttle interval, message size, receive timeout).
    """

    # ==========================================================================
    # Standalone Server Constants
    # ==========================================================================

    # SERVER_START_TIMEOUT: 5 seconds
    # The socket is already bound before uvicorn starts, so startup only has to
    # create the asyncio server. Anything slower than this is treated as a
    # failed bind and the standalone channel is left unavailable.
    SERVER_START_TIMEOUT: Final[float] = 5.0

    # SERVER_START_POLL_INTERVAL: 10 ms
    # Poll period while waiting for uvicorn's `started` flag.
    SERVER_START_POLL_INTERVAL: Final[float] = 0.01

    # LISTEN_BACKLOG: 100
    # Matches uvicorn's own default backlog for sockets it binds itself.
    LISTEN_BACKLOG: Final[int] = 100

    # ==========================================================================
    # Logging Constants
    # ==========================================================================

    # MAX_LOGGED_PAYLOAD: 100 characters
    # Inbound frames are echoed into warnings when malformed. Truncating keeps
    # a misbehaving client from flooding the process log.
    MAX_LOGGED_PAYLOAD: Final[int] = 100


class MessageType:
    """
    Envelope `type` tags exchanged with viewer clients.

    BUFFERED_RECORDS_REQUEST is deliberately absent: clients receive the
    backlog piggybacked on LOGIN_RESPONSE.
    """

    # Client -> server
    LOGIN_REQUEST: Final[str] = "LOGIN_REQUEST"
    LOG_OUT: Final[str] = "LOG_OUT"
    LOGIN_REQUIRED_QUESTION: Final[str] = "LOGIN_REQUIRED_QUESTION"
    GET_SERVER_FILTER: Final[str] = "GET_SERVER_FILTER"
    SET_SERVER_FILTER: Final[str] = "SET_SERVER_FILTER"
    UPLOAD_RECORDS: Final[str] = "UPLOAD_RECORDS"

    # Server -> client
    LOGIN_RESPONSE: Final[str] = "LOGIN_RESPONSE"
    LOGIN_REQUIRED_RESPONSE: Final[str] = "LOGIN_REQUIRED_RESPONSE"
    SERVER_FILTER: Final[str] = "SERVER_FILTER"
    RECORDS: Final[str] = "RECORDS"


class MessageResult:
    """Values of the `result` field carried by replies."""

    SUCCESS: Final[str] = "SUCCESS"
    ERROR: Final[str] = "ERROR"


# The only room in use: connections eligible to receive RECORDS broadcasts
SOCKET_ROOM: Final[str] = "authenticated"

# Source tag used in log lines about the gateway itself
LOG_SRC: Final[str] = "storyboard"

# Message type constants for heartbeat protocol
MSG_PING_PLAIN: Final[str] = "ping"
MSG_PING_JSON: Final[str] = '{"type":"ping"}'
