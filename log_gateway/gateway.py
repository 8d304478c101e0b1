"""
Log Gateway facade.

Wires the transport, authentication gate, message router and broadcast
buffer together and exposes the listener interface the record hub drives:

    gateway = create_gateway({"port": 8090, "throttle_interval_ms": 200}, hub=hub)
    await gateway.init()
    hub.add_listener(gateway)      # hub calls gateway.process(record)
    ...
    await gateway.tear_down()
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, TYPE_CHECKING

from fastapi import WebSocket

from log_gateway.config.logging import get_logger
from log_gateway.components.auth.gate import ConnectionGate
from log_gateway.components.broadcast.buffer import BroadcastBuffer
from log_gateway.components.broadcast.throttle import Scheduler
from log_gateway.components.core.config import GatewayConfig, build_config
from log_gateway.components.data.filters import FilterStore, InMemoryFilterStore
from log_gateway.components.endpoints.base import GatewayEndpoint
from log_gateway.components.events.router import MessageRouter
from log_gateway.components.metrics.collector import MetricsCollector
from log_gateway.components.transport.host import TransportHost

if TYPE_CHECKING:
    from log_gateway.components.data.hub import Hub, Record
    from log_gateway.components.transport.base import Channel

logger = get_logger(__name__)


class LogGateway:
    """
    Real-time broadcast listener.

    process() is synchronous and never raises on the hub's emit path, even
    from outside the event loop: before init() has bound a loop and with none
    running, every call flushes immediately. With no active channel, or after
    tear_down(), records are buffered and flushed to nobody.
    """

    type = "WS_SERVER"

    def __init__(
        self,
        config: GatewayConfig,
        hub: "Hub",
        filter_store: FilterStore | None = None,
        loop: Scheduler | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.config = config
        self.hub = hub
        self.filter_store = filter_store if filter_store is not None else InMemoryFilterStore()
        self.metrics = metrics if metrics is not None else MetricsCollector()

        self.gate = ConnectionGate(config.authenticate, hub)
        self.router = MessageRouter(self.gate, hub, self.filter_store, metrics=self.metrics)
        self.transport = TransportHost(
            self._on_connection,
            config.namespace,
            host=config.host,
            stats_provider=self.get_stats,
        )
        self.buffer = BroadcastBuffer(
            self.transport,
            config.throttle_interval_ms,
            loop=loop,
            metrics=self.metrics,
        )
        self._torn_down = False

    async def _on_connection(self, websocket: WebSocket, channel: "Channel") -> None:
        endpoint = GatewayEndpoint(
            websocket,
            channel,
            self.gate,
            self.router,
            metrics=self.metrics,
        )
        await endpoint.run()

    async def init(self) -> None:
        """
        Start the configured channels.

        A channel that fails to start is logged and skipped; init() itself
        never fails because of it.
        """
        self.buffer.throttle.bind_loop(asyncio.get_running_loop())
        standalone = await self.transport.start_standalone(self.config.port)
        attached = await self.transport.attach_to_external_host(
            self.config.external_socket_host,
            self.config.external_http_host,
        )
        logger.info(
            "Log gateway initialised",
            standalone=standalone,
            attached=attached,
            login_required=self.gate.login_required,
            throttle_ms=self.config.throttle_interval_ms,
        )

    async def tear_down(self) -> None:
        """Stop every channel. Later process() calls are harmless."""
        if self._torn_down:
            return
        self._torn_down = True
        await self.transport.stop()
        logger.info("Log gateway torn down")

    def process(self, record: "Record") -> None:
        """Queue a record for the next RECORDS broadcast."""
        self.buffer.add_record(record)
        self.buffer.request_flush()

    def get_stats(self) -> dict[str, Any]:
        return {
            "transport": self.transport.get_stats(),
            "buffer": self.buffer.get_stats(),
            "metrics": self.metrics.get_stats(),
        }


def create_gateway(
    user_config: Mapping[str, Any] | None = None,
    *,
    hub: "Hub",
    filter_store: FilterStore | None = None,
    loop: asyncio.AbstractEventLoop | Scheduler | None = None,
) -> LogGateway:
    """
    Build a LogGateway from user options merged over the defaults.

    Args:
        user_config: Options, see GatewayConfig. A present `port: None`
            disables the standalone channel.
        hub: Record hub used for buffered records and client uploads.
        filter_store: Server filter persistence, in-memory by default.
        loop: Scheduler for the throttle timer, the running loop by default.

    Raises:
        GatewayConfigError: Invalid options.
    """
    return LogGateway(build_config(user_config), hub, filter_store=filter_store, loop=loop)
