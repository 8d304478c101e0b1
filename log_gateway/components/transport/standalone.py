"""
Standalone channel: a listener owned by the gateway.

The TCP socket is bound here rather than by uvicorn so that a busy port
surfaces as an OSError we can report, instead of uvicorn exiting the
process. The bound socket is then served by an in-process uvicorn.Server
running as an asyncio task.
"""

import asyncio
import socket
from typing import Any, Callable

import uvicorn
from fastapi import FastAPI

from log_gateway.config.logging import get_logger
from log_gateway.config.settings import settings
from log_gateway.components.core.constants import LOG_SRC, WSCloseCode, WSConstants
from log_gateway.components.core.errors import BindError
from log_gateway.components.transport.base import Channel, ConnectionHandler

logger = get_logger(__name__)


class StandaloneChannel(Channel):
    """
    Channel served by its own uvicorn server.

    Besides the WebSocket route at `namespace`, the internal app answers
    `GET /health` with the gateway stats.
    """

    kind = "standalone"

    def __init__(
        self,
        namespace: str,
        on_connection: ConnectionHandler,
        port: int,
        host: str = "0.0.0.0",
        stats_provider: Callable[[], dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(namespace, on_connection)
        self.host = host
        self.requested_port = port
        self.port: int | None = None
        self._stats_provider = stats_provider
        self._server: uvicorn.Server | None = None
        self._task: asyncio.Task | None = None
        self.app = self._build_app()

    def _build_app(self) -> FastAPI:
        app = FastAPI(
            title="Log Gateway",
            description="Real-time log records for viewer clients",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )
        app.add_api_websocket_route(self.namespace, self.make_endpoint())

        @app.get("/health")
        def health_check() -> dict[str, Any]:
            """Basic health check endpoint."""
            try:
                stats = self._stats_provider() if self._stats_provider else {}
            except Exception as e:
                logger.warning("Failed to get stats in health check", error=str(e))
                stats = {"error": "stats_unavailable"}
            return {"status": "healthy", "service": "log-gateway", **stats}

        return app

    async def start(self) -> bool:
        if self._active:
            return True
        try:
            sock = self._bind()
        except OSError as e:
            self._report_failure(
                BindError(
                    self.kind,
                    f"Error initialising standalone server logs on port {self.requested_port}",
                    port=self.requested_port,
                ),
                e,
            )
            return False

        config = uvicorn.Config(
            self.app,
            lifespan="off",
            log_config=None,
            access_log=False,
            timeout_graceful_shutdown=settings.ws_shutdown_timeout,
        )
        self._server = uvicorn.Server(config)
        self._task = asyncio.create_task(
            self._server.serve(sockets=[sock]),
            name=f"log_gateway_standalone_{self.requested_port}",
        )

        if not await self._wait_started():
            error = self._task.exception() if self._task.done() and not self._task.cancelled() else None
            await self._shutdown_server()
            sock.close()
            self._report_failure(
                BindError(
                    self.kind,
                    f"Error initialising standalone server logs on port {self.requested_port}",
                    port=self.requested_port,
                ),
                error,
            )
            return False

        self.port = sock.getsockname()[1]
        self._active = True
        logger.info(
            f"Server logs available on port {self.port}",
            src=LOG_SRC,
            host=self.host,
            namespace=self.namespace,
        )
        return True

    async def stop(self) -> None:
        self._active = False
        if self._server is None:
            return
        await self.close_connections(WSCloseCode.GOING_AWAY, "Log gateway shutting down")
        await self._shutdown_server()
        logger.info("Standalone log server stopped", port=self.port)

    def _bind(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.requested_port))
            sock.listen(WSConstants.LISTEN_BACKLOG)
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        return sock

    async def _wait_started(self) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + WSConstants.SERVER_START_TIMEOUT
        while not self._server.started:
            if self._task.done() or loop.time() > deadline:
                return False
            await asyncio.sleep(WSConstants.SERVER_START_POLL_INTERVAL)
        return True

    async def _shutdown_server(self) -> None:
        server, task = self._server, self._task
        self._server = None
        self._task = None
        if server is None or task is None:
            return
        server.should_exit = True
        try:
            await asyncio.wait_for(task, timeout=settings.ws_shutdown_timeout + 1)
        except asyncio.TimeoutError:
            logger.warning("Standalone log server did not stop in time", port=self.port)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug("Standalone log server exited with error", error=str(e))

    def _report_failure(self, error: BindError, cause: BaseException | None) -> None:
        logger.error(
            str(error.message),
            src=LOG_SRC,
            channel=error.channel,
            error=str(cause) if cause else None,
            exc_info=cause,
        )

    def get_stats(self) -> dict[str, Any]:
        stats = super().get_stats()
        stats["port"] = self.port
        return stats
