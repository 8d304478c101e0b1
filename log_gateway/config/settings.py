"""
Gateway settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Gateway settings with defaults for development."""

    # Standalone listener
    # Port 0 asks the OS for an ephemeral port; the resolved port is logged
    log_gateway_port: int | None = 8090
    log_gateway_host: str = "0.0.0.0"

    # WebSocket path shared by the standalone and attached channels
    log_gateway_namespace: str = "/ws/logs"

    # Broadcast coalescing window in milliseconds (0 = flush on every record)
    log_gateway_throttle_ms: int = 200

    # WebSocket limits
    ws_max_message_size: int = 64 * 1024  # 64 KB, applies to inbound frames
    ws_receive_timeout: float | None = None  # None = wait forever for client frames
    ws_shutdown_timeout: float = 5.0  # Grace period for the standalone server on stop
    ws_send_queue_size: int = 1000  # Queued envelopes per client before it is dropped (0 = no cap)

    # In-memory hub backlog (records piggybacked on a successful login)
    hub_buffer_size: int = 1000

    # Filter applied by the in-memory filter store until a client changes it
    default_server_filter: str = "*:DEBUG"

    # Host application port used by the development server (log_gateway.main)
    host_app_port: int = 8000

    # Environment
    environment: str = "development"
    debug: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def validate_gateway_settings(self) -> list[str]:
        """
        Validate settings that would otherwise fail late at runtime.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        if self.log_gateway_throttle_ms < 0:
            errors.append("LOG_GATEWAY_THROTTLE_MS must be >= 0")

        if self.log_gateway_port is not None and not 0 <= self.log_gateway_port <= 65535:
            errors.append("LOG_GATEWAY_PORT must be between 0 and 65535")

        if not self.log_gateway_namespace.startswith("/"):
            errors.append("LOG_GATEWAY_NAMESPACE must start with '/'")

        if self.hub_buffer_size <= 0:
            errors.append("HUB_BUFFER_SIZE must be positive")

        if self.ws_send_queue_size < 0:
            errors.append("WS_SEND_QUEUE_SIZE must be >= 0")

        if self.environment == "production" and self.debug:
            errors.append("DEBUG must be False in production")

        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()
