"""
Pytest configuration and fixtures for log gateway tests.
"""

import asyncio
from typing import Any

import pytest
from starlette.websockets import WebSocketState

from log_gateway.components.core.context import Connection
from log_gateway.components.data.filters import InMemoryFilterStore
from log_gateway.components.data.hub import RecordHub


# =============================================================================
# Fakes
# =============================================================================


class FakeWebSocket:
    """
    Minimal stand-in for a Starlette WebSocket.

    Inbound frames are fed with push_text()/push_disconnect(); everything
    the gateway writes is recorded in `sent`.
    """

    def __init__(self) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTING
        self.sent: list[dict[str, Any]] = []
        self.accepted = False
        self.close_code: int | None = None
        self.fail_sends = False
        self._inbound: asyncio.Queue = asyncio.Queue()

    async def accept(self) -> None:
        self.accepted = True
        self.application_state = WebSocketState.CONNECTED

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.fail_sends:
            raise RuntimeError("socket broken")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.close_code = code
        self.application_state = WebSocketState.DISCONNECTED
        self._inbound.put_nowait({"type": "websocket.disconnect", "code": code})

    async def receive(self) -> dict[str, Any]:
        return await self._inbound.get()

    def push_text(self, text: str) -> None:
        self._inbound.put_nowait({"type": "websocket.receive", "text": text})

    def push_bytes(self, data: bytes) -> None:
        self._inbound.put_nowait({"type": "websocket.receive", "bytes": data})

    def push_disconnect(self, code: int = 1000) -> None:
        self.client_state = WebSocketState.DISCONNECTED
        self._inbound.put_nowait({"type": "websocket.disconnect", "code": code})


class FakeTimer:
    def __init__(self, scheduler: "FakeScheduler", delay: float, callback, args) -> None:
        self._scheduler = scheduler
        self.delay = delay
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """
    Manually driven replacement for loop.call_later.

    Timers only fire when the test calls fire_all().
    """

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback, *args) -> FakeTimer:
        timer = FakeTimer(self, delay, callback, args)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]

    def fire_all(self) -> int:
        """Fire every active timer, including ones scheduled while firing."""
        fired = 0
        while self.active:
            timer = self.active[0]
            timer.cancelled = True
            timer.callback(*timer.args)
            fired += 1
        return fired


class RecordingTransport:
    """Transport double that records room broadcasts."""

    def __init__(self, recipients: int = 1) -> None:
        self.recipients = recipients
        self.broadcasts: list[tuple[str, dict[str, Any]]] = []

    def broadcast_to_room(self, room: str, envelope: dict[str, Any]) -> int:
        self.broadcasts.append((room, envelope))
        return self.recipients


def queued(connection: Connection) -> list[dict[str, Any]]:
    """Drain and return everything queued on a connection without a writer."""
    items = []
    while connection.pending_sends:
        items.append(connection._outbox.get_nowait())
    return items


async def settle(rounds: int = 5) -> None:
    """Let call_soon callbacks and short tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def hub() -> RecordHub:
    return RecordHub(buffer_size=10)


@pytest.fixture
def filter_store() -> InMemoryFilterStore:
    return InMemoryFilterStore("*:DEBUG")


@pytest.fixture
def websocket() -> FakeWebSocket:
    return FakeWebSocket()


@pytest.fixture
def connection(websocket) -> Connection:
    websocket.application_state = WebSocketState.CONNECTED
    return Connection(websocket, "standalone")
