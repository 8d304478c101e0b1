"""
Message Router - dispatches inbound envelopes from viewer clients.

Each request produces at most one reply, queued on the requesting
connection. Log statements about the outcome (login, filter change,
unknown type) are deferred with loop.call_soon so they run after the
current handling completes and can never delay or break a reply.

Usage:
    router = MessageRouter(gate, hub, filter_store)
    await router.dispatch(connection, parse_envelope(raw))
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Awaitable, Callable, Mapping, TYPE_CHECKING

from log_gateway.config.logging import get_logger
from log_gateway.components.auth.gate import LoginResult
from log_gateway.components.core.constants import LOG_SRC, MessageType
from log_gateway.components.core.context import sanitize_log_data
from log_gateway.components.core.errors import FilterConfigError
from log_gateway.components.events.types import Envelope, failure, success

if TYPE_CHECKING:
    from log_gateway.components.auth.gate import ConnectionGate
    from log_gateway.components.core.context import Connection
    from log_gateway.components.data.filters import FilterStore
    from log_gateway.components.data.hub import Hub
    from log_gateway.components.metrics.collector import MetricsCollector

logger = get_logger(__name__)

Handler = Callable[["Connection", Envelope], Awaitable[None]]

INVALID_FILTER = "INVALID_FILTER"


class MessageRouter:
    """
    Routes client envelopes by `type`.

    | inbound                 | reply                   |
    |-------------------------|-------------------------|
    | LOGIN_REQUEST           | LOGIN_RESPONSE          |
    | LOG_OUT                 | -                       |
    | LOGIN_REQUIRED_QUESTION | LOGIN_REQUIRED_RESPONSE |
    | GET_SERVER_FILTER       | SERVER_FILTER           |
    | SET_SERVER_FILTER       | SERVER_FILTER           |
    | UPLOAD_RECORDS          | -                       |
    | anything else           | - (warning logged)      |
    """

    def __init__(
        self,
        gate: "ConnectionGate",
        hub: "Hub",
        filter_store: "FilterStore",
        metrics: "MetricsCollector | None" = None,
    ) -> None:
        self._gate = gate
        self._hub = hub
        self._filters = filter_store
        self._metrics = metrics
        self._handlers: dict[str, Handler] = {
            MessageType.LOGIN_REQUEST: self._handle_login,
            MessageType.LOG_OUT: self._handle_logout,
            MessageType.LOGIN_REQUIRED_QUESTION: self._handle_login_required,
            MessageType.GET_SERVER_FILTER: self._handle_get_filter,
            MessageType.SET_SERVER_FILTER: self._handle_set_filter,
            MessageType.UPLOAD_RECORDS: self._handle_upload,
        }

    @property
    def message_types(self) -> frozenset[str]:
        """Inbound types with a handler."""
        return frozenset(self._handlers)

    async def dispatch(self, connection: "Connection", envelope: Envelope) -> None:
        """Handle one envelope. Unknown types are logged and dropped."""
        handler = self._handlers.get(envelope.type)
        if handler is None:
            if self._metrics is not None:
                self._metrics.increment_unknown_types()
            self._defer(
                logger.warning,
                f"Unknown message type '{sanitize_log_data(envelope.type)}'",
                src=LOG_SRC,
                connection_id=connection.connection_id,
            )
            return
        await handler(connection, envelope)

    # =========================================================================
    # Authentication
    # =========================================================================

    async def _handle_login(self, connection: "Connection", envelope: Envelope) -> None:
        credentials = envelope.data
        if not isinstance(credentials, Mapping):
            self._count_login(False)
            connection.send(
                failure(MessageType.LOGIN_RESPONSE, LoginResult.INVALID_CREDENTIALS)
            )
            self._defer(
                logger.warning,
                "Login request without credentials",
                src=LOG_SRC,
                connection_id=connection.connection_id,
            )
            return

        result = await self._gate.login(connection, credentials)
        self._count_login(result.success)
        login = sanitize_log_data(result.login)

        if result.success:
            connection.send(success(MessageType.LOGIN_RESPONSE, result.to_data()))
            self._defer(
                logger.info,
                f"User '{login}' authenticated successfully",
                src=LOG_SRC,
                buffered_records=len(result.buffered_records),
            )
        else:
            connection.send(failure(MessageType.LOGIN_RESPONSE, result.error))
            self._defer(
                logger.warning,
                f"User '{login}' authentication failed",
                src=LOG_SRC,
                reason=result.error,
            )

    async def _handle_logout(self, connection: "Connection", envelope: Envelope) -> None:
        self._gate.logout(connection)

    async def _handle_login_required(self, connection: "Connection", envelope: Envelope) -> None:
        connection.send(
            success(
                MessageType.LOGIN_REQUIRED_RESPONSE,
                {"fLoginRequired": self._gate.login_required},
            )
        )

    # =========================================================================
    # Server filter
    # =========================================================================

    async def _handle_get_filter(self, connection: "Connection", envelope: Envelope) -> None:
        self._send_filter(connection)

    async def _handle_set_filter(self, connection: "Connection", envelope: Envelope) -> None:
        new_filter = envelope.data
        try:
            self._filters.set_config(new_filter)
        except FilterConfigError as e:
            connection.send(
                failure(
                    MessageType.SERVER_FILTER,
                    INVALID_FILTER,
                    {"filter": self._filters.get_config()},
                )
            )
            self._defer(
                logger.warning,
                "Rejected server filter",
                src=LOG_SRC,
                filter=sanitize_log_data(new_filter),
                error=str(e),
            )
            return

        self._defer(
            logger.info,
            f"Server filter changed to: {sanitize_log_data(new_filter)}",
            src=LOG_SRC,
        )
        self._send_filter(connection)

    def _send_filter(self, connection: "Connection") -> None:
        connection.send(
            success(MessageType.SERVER_FILTER, {"filter": self._filters.get_config()})
        )

    # =========================================================================
    # Record upload
    # =========================================================================

    async def _handle_upload(self, connection: "Connection", envelope: Envelope) -> None:
        records = envelope.data
        if not isinstance(records, list):
            if self._metrics is not None:
                self._metrics.increment_malformed_messages()
            self._defer(
                logger.warning,
                "UPLOAD_RECORDS without a record list",
                src=LOG_SRC,
                connection_id=connection.connection_id,
            )
            return
        # Records re-enter the pipeline after the current handling completes
        asyncio.get_running_loop().call_soon(self._emit_records, records)

    def _emit_records(self, records: list[Any]) -> None:
        if self._metrics is not None:
            self._metrics.add_uploaded_records(len(records))
        for record in records:
            try:
                self._hub.emit(record)
            except Exception as e:
                logger.error("Hub rejected uploaded record", error=str(e), exc_info=e)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _count_login(self, success_: bool) -> None:
        if self._metrics is not None:
            self._metrics.increment_logins(success_)

    @staticmethod
    def _defer(log_fn: Callable[..., None], msg: str, **kwargs: Any) -> None:
        asyncio.get_running_loop().call_soon(functools.partial(log_fn, msg, **kwargs))
