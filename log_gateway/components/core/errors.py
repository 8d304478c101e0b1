"""
Gateway exceptions.

Usage:
    from log_gateway.components.core.errors import BindError, AuthError

    raise BindError("standalone", "Error initialising standalone server logs", port=8090)
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """
    Base exception for the log gateway.

    Keeps keyword context so the exception can be logged with the same
    structured fields it was raised with.
    """

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({details})"


class BindError(GatewayError):
    """
    A channel failed to start or attach.

    Caught where the channel starts; the channel stays unavailable for the
    rest of the process lifetime.
    """

    def __init__(self, channel: str, message: str, **context: Any):
        super().__init__(message, channel=channel, **context)
        self.channel = channel


class AuthError(GatewayError):
    """The authenticate predicate raised while checking credentials."""

    def __init__(self, login: Any = None, message: str = "Authentication check failed"):
        super().__init__(message, login=login)
        self.login = login


class GatewayConfigError(GatewayError):
    """Invalid gateway configuration."""


class FilterConfigError(GatewayError):
    """A client tried to set an invalid server filter."""


class MalformedEnvelopeError(GatewayError):
    """An inbound frame is not a valid `{type, data}` envelope."""
