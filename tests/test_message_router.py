"""
Tests for MessageRouter.

Tests verify:
- Replies for every inbound type
- Unknown types are logged and never answered
- Server filter round trip
- Uploaded records re-enter the hub after the current handling
- Outcome logs are deferred past the reply
"""

import logging

import pytest

from log_gateway.components.auth.gate import ConnectionGate
from log_gateway.components.core.constants import MessageType, SOCKET_ROOM
from log_gateway.components.events.router import INVALID_FILTER, MessageRouter
from log_gateway.components.events.types import Envelope
from log_gateway.components.metrics.collector import MetricsCollector
from tests.conftest import queued, settle


def check_password(credentials):
    return credentials.get("password") == "secret"


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def open_router(hub, filter_store, metrics):
    return MessageRouter(ConnectionGate(None, hub), hub, filter_store, metrics=metrics)


@pytest.fixture
def auth_router(hub, filter_store, metrics):
    return MessageRouter(ConnectionGate(check_password, hub), hub, filter_store, metrics=metrics)


class TestRouterLogin:
    @pytest.mark.asyncio
    async def test_login_success_reply(self, auth_router, hub, connection):
        hub.emit({"msg": "old"})

        await auth_router.dispatch(
            connection,
            Envelope(type=MessageType.LOGIN_REQUEST, data={"login": "ana", "password": "secret"}),
        )

        assert queued(connection) == [
            {
                "type": "LOGIN_RESPONSE",
                "result": "SUCCESS",
                "data": {"login": "ana", "bufferedRecords": [{"msg": "old"}]},
            }
        ]
        assert connection.in_room(SOCKET_ROOM)

    @pytest.mark.asyncio
    async def test_login_failure_reply(self, auth_router, connection, metrics):
        await auth_router.dispatch(
            connection,
            Envelope(type=MessageType.LOGIN_REQUEST, data={"login": "ana", "password": "x"}),
        )

        assert queued(connection) == [
            {"type": "LOGIN_RESPONSE", "result": "ERROR", "error": "AUTH_FAILED"}
        ]
        assert not connection.authenticated
        assert metrics.get_snapshot()["messages"]["logins_failed"] == 1

    @pytest.mark.asyncio
    async def test_login_without_credentials(self, auth_router, connection):
        await auth_router.dispatch(connection, Envelope(type=MessageType.LOGIN_REQUEST))

        reply = queued(connection)[0]
        assert reply["result"] == "ERROR"
        assert reply["error"] == "INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_success_log_is_deferred(self, auth_router, connection, caplog):
        caplog.set_level(logging.DEBUG)

        await auth_router.dispatch(
            connection,
            Envelope(type=MessageType.LOGIN_REQUEST, data={"login": "ana", "password": "secret"}),
        )
        assert connection.pending_sends == 1
        assert "authenticated successfully" not in caplog.text

        await settle()
        assert "User 'ana' authenticated successfully" in caplog.text

    @pytest.mark.asyncio
    async def test_logout_leaves_room(self, auth_router, connection):
        await auth_router.dispatch(
            connection,
            Envelope(type=MessageType.LOGIN_REQUEST, data={"login": "ana", "password": "secret"}),
        )
        queued(connection)

        await auth_router.dispatch(connection, Envelope(type=MessageType.LOG_OUT))

        assert queued(connection) == []
        assert not connection.in_room(SOCKET_ROOM)


class TestRouterLoginRequired:
    @pytest.mark.asyncio
    async def test_without_authentication(self, open_router, connection):
        await open_router.dispatch(connection, Envelope(type=MessageType.LOGIN_REQUIRED_QUESTION))

        assert queued(connection) == [
            {
                "type": "LOGIN_REQUIRED_RESPONSE",
                "result": "SUCCESS",
                "data": {"fLoginRequired": False},
            }
        ]

    @pytest.mark.asyncio
    async def test_with_authentication(self, auth_router, connection):
        await auth_router.dispatch(connection, Envelope(type=MessageType.LOGIN_REQUIRED_QUESTION))

        assert queued(connection)[0]["data"] == {"fLoginRequired": True}


class TestRouterServerFilter:
    @pytest.mark.asyncio
    async def test_get_filter(self, open_router, connection):
        await open_router.dispatch(connection, Envelope(type=MessageType.GET_SERVER_FILTER))

        assert queued(connection) == [
            {"type": "SERVER_FILTER", "result": "SUCCESS", "data": {"filter": "*:DEBUG"}}
        ]

    @pytest.mark.asyncio
    async def test_set_then_get_round_trip(self, open_router, connection, filter_store):
        await open_router.dispatch(
            connection, Envelope(type=MessageType.SET_SERVER_FILTER, data="main:INFO")
        )
        await open_router.dispatch(connection, Envelope(type=MessageType.GET_SERVER_FILTER))

        replies = queued(connection)
        assert [r["data"]["filter"] for r in replies] == ["main:INFO", "main:INFO"]
        assert filter_store.get_config() == "main:INFO"

    @pytest.mark.asyncio
    async def test_round_trip_keeps_value_unchanged(self, open_router, connection):
        await open_router.dispatch(
            connection, Envelope(type=MessageType.SET_SERVER_FILTER, data="  *:INFO  ")
        )
        await open_router.dispatch(connection, Envelope(type=MessageType.GET_SERVER_FILTER))

        replies = queued(connection)
        assert replies[-1]["data"] == {"filter": "  *:INFO  "}

    @pytest.mark.asyncio
    async def test_invalid_filter_rejected(self, open_router, connection, filter_store):
        await open_router.dispatch(
            connection, Envelope(type=MessageType.SET_SERVER_FILTER, data={"not": "a string"})
        )

        assert queued(connection) == [
            {
                "type": "SERVER_FILTER",
                "result": "ERROR",
                "error": INVALID_FILTER,
                "data": {"filter": "*:DEBUG"},
            }
        ]
        assert filter_store.get_config() == "*:DEBUG"

    @pytest.mark.asyncio
    async def test_filter_change_logged_after_reply(self, open_router, connection, caplog):
        caplog.set_level(logging.DEBUG)

        await open_router.dispatch(
            connection, Envelope(type=MessageType.SET_SERVER_FILTER, data="main:WARN")
        )
        assert "Server filter changed" not in caplog.text

        await settle()
        assert "Server filter changed to: main:WARN" in caplog.text


class TestRouterUpload:
    @pytest.mark.asyncio
    async def test_records_emitted_after_handling(self, open_router, connection, hub, metrics):
        await open_router.dispatch(
            connection,
            Envelope(type=MessageType.UPLOAD_RECORDS, data=[{"msg": 1}, {"msg": 2}]),
        )
        assert hub.get_buffered_records() == []

        await settle()

        assert hub.get_buffered_records() == [{"msg": 1}, {"msg": 2}]
        assert metrics.get_snapshot()["messages"]["records_uploaded"] == 2
        assert queued(connection) == []

    @pytest.mark.asyncio
    async def test_upload_without_list_ignored(self, open_router, connection, hub, metrics):
        await open_router.dispatch(
            connection, Envelope(type=MessageType.UPLOAD_RECORDS, data={"msg": 1})
        )
        await settle()

        assert hub.get_buffered_records() == []
        assert metrics.get_snapshot()["messages"]["malformed"] == 1

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_stop_upload(self, open_router, connection, hub):
        class Broken:
            def process(self, record):
                raise RuntimeError("listener down")

        hub.add_listener(Broken())

        await open_router.dispatch(
            connection, Envelope(type=MessageType.UPLOAD_RECORDS, data=[1, 2, 3])
        )
        await settle()

        assert hub.get_buffered_records() == [1, 2, 3]


class TestRouterUnknownType:
    @pytest.mark.asyncio
    async def test_unknown_type_is_inert(self, open_router, connection, metrics, caplog):
        caplog.set_level(logging.DEBUG)

        await open_router.dispatch(connection, Envelope(type="BUFFERED_RECORDS_REQUEST"))
        await settle()

        assert queued(connection) == []
        assert metrics.get_snapshot()["messages"]["unknown_type"] == 1
        assert "Unknown message type 'BUFFERED_RECORDS_REQUEST'" in caplog.text

    def test_message_types(self, open_router):
        assert open_router.message_types == frozenset(
            {
                "LOGIN_REQUEST",
                "LOG_OUT",
                "LOGIN_REQUIRED_QUESTION",
                "GET_SERVER_FILTER",
                "SET_SERVER_FILTER",
                "UPLOAD_RECORDS",
            }
        )
