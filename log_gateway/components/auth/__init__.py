"""
Authentication components.
"""

from log_gateway.components.auth.gate import (
    ConnectionGate,
    LoginResult,
    as_async_predicate,
)

__all__ = [
    "ConnectionGate",
    "LoginResult",
    "as_async_predicate",
]
