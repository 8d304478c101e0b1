"""
Tests for the transport layer.

Tests verify:
- Standalone channel serves /health and reports the bound port
- A busy port is logged and leaves the gateway without that channel
- Attaching to FastAPI and plain Starlette hosts, and rejecting others
- Broadcasts fan out over both channels to room members only
- stop() is idempotent
"""

import logging
import socket

import httpx
import pytest
from fastapi import FastAPI
from starlette.applications import Starlette
from starlette.websockets import WebSocketState

from log_gateway.components.core.constants import SOCKET_ROOM
from log_gateway.components.core.context import Connection
from log_gateway.components.core.errors import BindError
from log_gateway.components.transport.attached import AttachedChannel, normalize_host
from log_gateway.components.transport.host import TransportHost
from log_gateway.components.transport.standalone import StandaloneChannel
from tests.conftest import FakeWebSocket, queued


async def ignore_connection(websocket, channel):
    await websocket.close()


def member(channel, authenticated=True) -> Connection:
    websocket = FakeWebSocket()
    websocket.application_state = WebSocketState.CONNECTED
    connection = Connection(websocket, channel.kind)
    if authenticated:
        connection.set_authenticated(True)
        connection.join(SOCKET_ROOM)
    channel.register(connection)
    return connection


@pytest.fixture
def busy_port():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(1)
    yield sock.getsockname()[1]
    sock.close()


class TestStandaloneChannel:
    @pytest.mark.asyncio
    async def test_start_serves_health(self):
        channel = StandaloneChannel(
            "/ws/logs",
            ignore_connection,
            port=0,
            host="127.0.0.1",
            stats_provider=lambda: {"connections": 0},
        )

        assert await channel.start()
        try:
            assert channel.is_active
            assert channel.port
            async with httpx.AsyncClient() as client:
                response = await client.get(f"http://127.0.0.1:{channel.port}/health")
            assert response.status_code == 200
            assert response.json() == {
                "status": "healthy",
                "service": "log-gateway",
                "connections": 0,
            }
        finally:
            await channel.stop()

        assert not channel.is_active

    @pytest.mark.asyncio
    async def test_busy_port_logged_not_raised(self, busy_port, caplog):
        caplog.set_level(logging.DEBUG)
        channel = StandaloneChannel("/ws/logs", ignore_connection, port=busy_port, host="127.0.0.1")

        assert await channel.start() is False

        assert not channel.is_active
        assert f"Error initialising standalone server logs on port {busy_port}" in caplog.text

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        channel = StandaloneChannel("/ws/logs", ignore_connection, port=0, host="127.0.0.1")

        await channel.stop()
        await channel.stop()

        assert not channel.is_active


class TestAttachedChannel:
    def test_normalize_prefers_socket_host(self):
        socket_host, http_host = FastAPI(), Starlette()

        host, register = normalize_host(socket_host, http_host)

        assert host is socket_host
        assert register == socket_host.add_api_websocket_route

    def test_normalize_plain_http_host(self):
        http_host = Starlette()

        host, register = normalize_host(None, http_host)
        register("/ws/logs", ignore_connection)

        assert host is http_host
        assert "/ws/logs" in [route.path for route in http_host.routes]

    @pytest.mark.asyncio
    async def test_attach_and_detach_plain_starlette_host(self):
        app = Starlette()
        channel = AttachedChannel("/ws/logs", ignore_connection, http_host=app)

        assert await channel.start()
        assert "/ws/logs" in [route.path for route in app.routes]

        await channel.stop()
        assert "/ws/logs" not in [route.path for route in app.routes]
        assert not channel.is_active

    def test_normalize_rejects_unusable_host(self):
        with pytest.raises(BindError):
            normalize_host(object())
        with pytest.raises(BindError):
            normalize_host()

    @pytest.mark.asyncio
    async def test_attach_and_detach_route(self):
        app = FastAPI()
        channel = AttachedChannel("/ws/logs", ignore_connection, socket_host=app)

        assert await channel.start()
        assert "/ws/logs" in [route.path for route in app.routes]

        await channel.stop()
        assert "/ws/logs" not in [route.path for route in app.routes]
        assert not channel.is_active

    @pytest.mark.asyncio
    async def test_unusable_host_logged(self, caplog):
        caplog.set_level(logging.DEBUG)
        channel = AttachedChannel("/ws/logs", ignore_connection, http_host=object())

        assert await channel.start() is False
        assert "Error initialising log server adaptor" in caplog.text


class TestTransportHost:
    @pytest.mark.asyncio
    async def test_no_port_means_no_standalone(self):
        transport = TransportHost(ignore_connection, "/ws/logs")

        assert await transport.start_standalone(None) is False
        assert transport.standalone is None
        assert transport.channels == []

    @pytest.mark.asyncio
    async def test_broadcast_without_channels_is_noop(self):
        transport = TransportHost(ignore_connection, "/ws/logs")

        assert transport.broadcast_to_room(SOCKET_ROOM, {"type": "RECORDS", "data": []}) == 0

    @pytest.mark.asyncio
    async def test_fan_out_over_both_channels(self):
        app = FastAPI()
        transport = TransportHost(ignore_connection, "/ws/logs", host="127.0.0.1")
        assert await transport.start_standalone(0)
        assert await transport.attach_to_external_host(socket_host=app)
        try:
            standalone_member = member(transport.standalone)
            attached_member = member(transport.attached)
            outsider = member(transport.attached, authenticated=False)
            envelope = {"type": "RECORDS", "data": [{"msg": "hi"}]}

            sent = transport.broadcast_to_room(SOCKET_ROOM, envelope)

            assert sent == 2
            assert queued(standalone_member) == [envelope]
            assert queued(attached_member) == [envelope]
            assert queued(outsider) == []
            assert transport.connection_count == 3
        finally:
            await transport.stop()

    @pytest.mark.asyncio
    async def test_failed_standalone_keeps_attached(self, busy_port):
        app = FastAPI()
        transport = TransportHost(ignore_connection, "/ws/logs", host="127.0.0.1")

        assert await transport.start_standalone(busy_port) is False
        assert await transport.attach_to_external_host(http_host=app)
        try:
            assert transport.standalone is None
            assert [channel.kind for channel in transport.channels] == ["attached"]
            attached_member = member(transport.attached)

            assert transport.broadcast_to_room(SOCKET_ROOM, {"type": "RECORDS", "data": []}) == 1
            assert queued(attached_member) == [{"type": "RECORDS", "data": []}]
        finally:
            await transport.stop()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        app = FastAPI()
        transport = TransportHost(ignore_connection, "/ws/logs")
        await transport.attach_to_external_host(socket_host=app)

        await transport.stop()
        await transport.stop()

        assert transport.channels == []
        assert transport.broadcast_to_room(SOCKET_ROOM, {"type": "RECORDS", "data": []}) == 0

    @pytest.mark.asyncio
    async def test_stop_closes_live_connections(self):
        app = FastAPI()
        transport = TransportHost(ignore_connection, "/ws/logs")
        await transport.attach_to_external_host(socket_host=app)
        connection = member(transport.attached)

        await transport.stop()

        assert connection.is_closed
        assert connection.websocket.close_code == 1001
