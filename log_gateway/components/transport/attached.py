"""
Attached channel: a WebSocket route on a host application.

Lets the main application serve viewer clients on its own port. Two kinds of
host are accepted and normalised to a single route registration:

- a real-time capable host (FastAPI app or APIRouter), which exposes
  `add_api_websocket_route`;
- a raw HTTP host (plain Starlette app), whose router exposes
  `add_websocket_route`. Older Starlette releases also expose it on the app.
"""

from typing import Any, Callable

from fastapi import WebSocket

from log_gateway.config.logging import get_logger
from log_gateway.components.core.constants import LOG_SRC, WSCloseCode
from log_gateway.components.core.errors import BindError
from log_gateway.components.transport.base import Channel, ConnectionHandler

logger = get_logger(__name__)

RouteRegistrar = Callable[[str, Callable[[WebSocket], Any]], None]


def normalize_host(socket_host: Any = None, http_host: Any = None) -> tuple[Any, RouteRegistrar]:
    """
    Pick the host to attach to and return its route registration function.

    socket_host wins when both are given.

    Raises:
        BindError: No host given, or the host cannot serve WebSocket routes.
    """
    host = socket_host if socket_host is not None else http_host
    if host is None:
        raise BindError("attached", "No external host supplied")

    register = getattr(host, "add_api_websocket_route", None)
    if register is None:
        register = getattr(host, "add_websocket_route", None)
    if register is None:
        register = getattr(getattr(host, "router", None), "add_websocket_route", None)
    if register is None or not callable(register):
        raise BindError(
            "attached",
            "External host cannot serve WebSocket routes",
            host=type(host).__name__,
        )
    return host, register


def _route_list(host: Any) -> list | None:
    routes = getattr(host, "routes", None)
    if routes is None:
        routes = getattr(getattr(host, "router", None), "routes", None)
    return routes if isinstance(routes, list) else None


class AttachedChannel(Channel):
    """
    Channel living on a caller-supplied host.

    The gateway does not own the host's listener; stop() only detaches: the
    route is removed when the host exposes a mutable `routes` list, live
    connections are closed and late connections are rejected.
    """

    kind = "attached"

    def __init__(
        self,
        namespace: str,
        on_connection: ConnectionHandler,
        socket_host: Any = None,
        http_host: Any = None,
    ) -> None:
        super().__init__(namespace, on_connection)
        self._socket_host = socket_host
        self._http_host = http_host
        self._host: Any = None
        self._route: Any = None

    async def start(self) -> bool:
        if self._active:
            return True
        try:
            self._host, register = normalize_host(self._socket_host, self._http_host)
            routes = _route_list(self._host)
            before = len(routes) if routes is not None else None
            register(self.namespace, self.make_endpoint())
        except (BindError, TypeError, ValueError, AttributeError) as e:
            logger.error(
                "Error initialising log server adaptor",
                src=LOG_SRC,
                namespace=self.namespace,
                error=str(e),
                exc_info=e,
            )
            self._host = None
            return False

        if before is not None and len(routes) > before:
            self._route = routes[-1]
        self._active = True
        logger.info(
            "Server logs available through main HTTP server",
            src=LOG_SRC,
            host=type(self._host).__name__,
            namespace=self.namespace,
        )
        return True

    async def stop(self) -> None:
        was_active = self._active
        self._active = False
        if self._host is None:
            return
        self._detach_route()
        await self.close_connections(WSCloseCode.GOING_AWAY, "Log gateway detached")
        self._host = None
        if was_active:
            logger.info("Log server adaptor detached", namespace=self.namespace)

    def _detach_route(self) -> None:
        if self._route is None:
            return
        routes = _route_list(self._host)
        if routes is not None and self._route in routes:
            routes.remove(self._route)
        self._route = None
