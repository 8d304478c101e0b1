"""
Gateway configuration.

GatewayConfig is immutable once built. build_config() merges user input over
defaults taken from Settings: a key present in the user input always wins,
even when its value is None (port=None disables the standalone listener),
while absent keys fall back to the default.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Union

from log_gateway.config.settings import settings
from log_gateway.components.core.errors import GatewayConfigError

# Predicate over the LOGIN_REQUEST credentials; may be sync or async
Authenticator = Callable[[Mapping[str, Any]], Union[bool, Awaitable[bool]]]


@dataclass(frozen=True, slots=True)
class GatewayConfig:
    """
    Attributes:
        port: Standalone listener port, None disables the standalone channel.
        throttle_interval_ms: Broadcast coalescing window, 0 disables it.
        authenticate: Credentials predicate, None disables authentication.
        external_socket_host: FastAPI app or APIRouter to attach to.
        external_http_host: Plain Starlette app to attach to.
        host: Bind address of the standalone listener.
        namespace: WebSocket path used on every channel.
    """

    port: int | None = None
    throttle_interval_ms: int = 0
    authenticate: Authenticator | None = None
    external_socket_host: Any = None
    external_http_host: Any = None
    host: str = "0.0.0.0"
    namespace: str = "/ws/logs"

    @property
    def login_required(self) -> bool:
        return self.authenticate is not None

    @property
    def has_external_host(self) -> bool:
        return self.external_socket_host is not None or self.external_http_host is not None


def default_config() -> dict[str, Any]:
    """Defaults taken from the environment-backed settings."""
    return {
        "port": settings.log_gateway_port,
        "throttle_interval_ms": settings.log_gateway_throttle_ms,
        "authenticate": None,
        "external_socket_host": None,
        "external_http_host": None,
        "host": settings.log_gateway_host,
        "namespace": settings.log_gateway_namespace,
    }


_CONFIG_FIELDS = frozenset(f.name for f in dataclasses.fields(GatewayConfig))


def build_config(user_config: Mapping[str, Any] | None = None) -> GatewayConfig:
    """
    Build a GatewayConfig from user input merged over the defaults.

    Raises:
        GatewayConfigError: Unknown option or invalid value.
    """
    user_config = dict(user_config or {})

    unknown = set(user_config) - _CONFIG_FIELDS
    if unknown:
        raise GatewayConfigError(
            "Unknown gateway options",
            options=", ".join(sorted(unknown)),
        )

    merged = default_config()
    merged.update(user_config)

    # 0/None/False all mean "no throttling"
    throttle = merged["throttle_interval_ms"] or 0
    if isinstance(throttle, bool) or not isinstance(throttle, int) or throttle < 0:
        raise GatewayConfigError(
            "throttle_interval_ms must be a non-negative integer",
            value=throttle,
        )
    merged["throttle_interval_ms"] = throttle

    port = merged["port"]
    if port is not None and (
        isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535
    ):
        raise GatewayConfigError("port must be between 0 and 65535 or None", value=port)

    authenticate = merged["authenticate"]
    if authenticate is not None and not callable(authenticate):
        raise GatewayConfigError("authenticate must be callable or None")

    namespace = merged["namespace"]
    if not isinstance(namespace, str) or not namespace.startswith("/"):
        raise GatewayConfigError("namespace must be a path starting with '/'", value=namespace)

    return GatewayConfig(**merged)
