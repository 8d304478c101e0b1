"""
Development server.

Runs a host FastAPI application with the log gateway attached to it and a
standalone listener on LOG_GATEWAY_PORT, fed by a process-wide RecordHub.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from log_gateway.config.settings import settings
from log_gateway.config.logging import setup_logging, gateway_logger as logger
from log_gateway.components.data.hub import RecordHub
from log_gateway.gateway import create_gateway

hub = RecordHub()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the gateway with the host app and stop it on shutdown."""
    setup_logging()
    logger.info(
        "Starting log gateway",
        port=settings.log_gateway_port,
        env=settings.environment,
    )

    gateway = create_gateway(
        {"external_socket_host": app},
        hub=hub,
    )
    await gateway.init()
    hub.add_listener(gateway)
    app.state.log_gateway = gateway

    yield

    logger.info("Shutting down log gateway")
    hub.remove_listener(gateway)
    await gateway.tear_down()


app = FastAPI(
    title="Log Gateway Host",
    description="Host application serving log viewers",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/")
def health_check():
    """Basic health check of the host application."""
    gateway = getattr(app.state, "log_gateway", None)
    return {
        "status": "healthy",
        "service": "log-gateway-host",
        **(gateway.get_stats() if gateway is not None else {}),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "log_gateway.main:app",
        host=settings.log_gateway_host,
        port=settings.host_app_port,
        reload=settings.debug,
    )
