"""
Connection Gate.

Per-connection authentication state machine:

    Unauthenticated --login ok--> Authenticated --logout--> Unauthenticated

With no authenticate predicate configured every connection starts (and stays)
Authenticated. Authenticated connections are members of SOCKET_ROOM and
therefore receive RECORDS broadcasts.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, TYPE_CHECKING

from log_gateway.config.logging import get_logger
from log_gateway.components.core.constants import SOCKET_ROOM
from log_gateway.components.core.errors import AuthError

if TYPE_CHECKING:
    from log_gateway.components.core.config import Authenticator
    from log_gateway.components.core.context import Connection
    from log_gateway.components.data.hub import Hub

logger = get_logger(__name__)


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True, slots=True)
class LoginResult:
    """
    Result of a login attempt.

    Attributes:
        success: Whether the connection is now authenticated.
        login: Login identity taken from the credentials.
        buffered_records: Hub backlog, only on success.
        error: Reason code on failure (AUTH_FAILED, AUTH_ERROR, ...).
    """

    success: bool
    login: Any = None
    buffered_records: list[Any] = field(default_factory=list)
    error: str | None = None

    AUTH_FAILED = "AUTH_FAILED"
    AUTH_ERROR = "AUTH_ERROR"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"

    @classmethod
    def ok(cls, login: Any, buffered_records: list[Any]) -> "LoginResult":
        return cls(success=True, login=login, buffered_records=buffered_records)

    @classmethod
    def fail(cls, login: Any, error: str = AUTH_FAILED) -> "LoginResult":
        return cls(success=False, login=login, error=error)

    def to_data(self) -> dict[str, Any]:
        """Payload of a successful LOGIN_RESPONSE."""
        return {"login": self.login, "bufferedRecords": self.buffered_records}


# =============================================================================
# Predicate normalisation
# =============================================================================


def as_async_predicate(
    authenticate: "Authenticator",
) -> Callable[[Mapping[str, Any]], Awaitable[bool]]:
    """
    Wrap a sync-or-async credentials predicate as a coroutine function.

    The gate always awaits the wrapped predicate, whatever the
    authenticate callable returned: a bool or an awaitable.
    """

    async def predicate(credentials: Mapping[str, Any]) -> bool:
        result = authenticate(credentials)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)

    return predicate


# =============================================================================
# Gate
# =============================================================================


class ConnectionGate:
    """
    Decides which connections may receive broadcasts.

    Usage:
        gate = ConnectionGate(authenticate=check_password, hub=hub)
        gate.on_connect(connection)
        result = await gate.login(connection, {"login": "ana", "password": "..."})
    """

    def __init__(self, authenticate: "Authenticator | None", hub: "Hub") -> None:
        self._hub = hub
        self._predicate = as_async_predicate(authenticate) if authenticate is not None else None

    @property
    def login_required(self) -> bool:
        return self._predicate is not None

    def on_connect(self, connection: "Connection") -> None:
        """Set the initial state of a freshly accepted connection."""
        if self._predicate is None:
            self._grant(connection)
        else:
            connection.set_authenticated(False)

    async def login(self, connection: "Connection", credentials: Mapping[str, Any]) -> LoginResult:
        """
        Authenticate a connection.

        Never raises for a rejected or failing predicate: the outcome is
        always reported through the returned LoginResult, and a failed
        attempt leaves the connection state untouched. A LOG_OUT handled
        while the predicate is pending wins: the login then fails.
        """
        login = credentials.get("login")

        if not (connection.authenticated or self._predicate is None):
            logouts = connection.logout_count
            try:
                valid = await self._predicate(credentials)
            except Exception as e:
                auth_error = AuthError(login=login)
                logger.error(
                    str(auth_error),
                    connection_id=connection.connection_id,
                    error=str(e),
                    exc_info=e,
                )
                return LoginResult.fail(login, LoginResult.AUTH_ERROR)
            if not valid:
                return LoginResult.fail(login, LoginResult.AUTH_FAILED)
            if connection.logout_count != logouts:
                logger.debug(
                    "Login superseded by logout",
                    connection_id=connection.connection_id,
                )
                return LoginResult.fail(login, LoginResult.AUTH_FAILED)

        self._grant(connection)
        return LoginResult.ok(login, self._hub.get_buffered_records())

    def logout(self, connection: "Connection") -> None:
        """
        Drop back to Unauthenticated.

        No-op when authentication is disabled: there is no unauthenticated
        state to return to.
        """
        if self._predicate is None:
            return
        connection.set_authenticated(False)
        connection.leave(SOCKET_ROOM)

    def _grant(self, connection: "Connection") -> None:
        connection.set_authenticated(True)
        connection.join(SOCKET_ROOM)
