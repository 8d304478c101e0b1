"""
Server filter store.

The filter configuration is an opaque string (e.g. "*:DEBUG" or
"*:INFO, noisy-module:WARN") owned by the process-level logging setup.
Clients read it with GET_SERVER_FILTER and replace it with
SET_SERVER_FILTER.
"""

from __future__ import annotations

from typing import Any, Protocol

from log_gateway.config.settings import settings
from log_gateway.components.core.errors import FilterConfigError


class FilterStore(Protocol):
    """Interface the gateway consumes."""

    def get_config(self) -> Any: ...

    def set_config(self, config: Any) -> None: ...


class InMemoryFilterStore:
    """Filter store that keeps the configuration in a single attribute."""

    def __init__(self, initial: str | None = None) -> None:
        self._config = initial if initial is not None else settings.default_server_filter

    def get_config(self) -> str:
        return self._config

    def set_config(self, config: Any) -> None:
        """
        Replace the filter configuration. The value is stored as given.

        Raises:
            FilterConfigError: config is not a non-blank string.
        """
        if not isinstance(config, str) or not config.strip():
            raise FilterConfigError("Server filter must be a non-empty string")
        self._config = config
