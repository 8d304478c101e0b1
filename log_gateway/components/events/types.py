"""
Wire envelope.

Every frame exchanged with viewer clients is a JSON object
`{"type": <tag>, "data": <payload>}`. Replies also carry `result`
("SUCCESS"/"ERROR") and, on failure, an `error` reason code.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError

from log_gateway.components.core.constants import MessageResult, MessageType
from log_gateway.components.core.errors import MalformedEnvelopeError


class Envelope(BaseModel):
    """
    Inbound or outbound `{type, data}` message.

    Extra keys sent by clients are kept but ignored by the router.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    type: StrictStr
    data: Any = None
    result: str | None = None
    error: str | None = None

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict; data is passed through untouched."""
        message: dict[str, Any] = {"type": self.type}
        if self.result is not None:
            message["result"] = self.result
        if self.data is not None:
            message["data"] = self.data
        if self.error is not None:
            message["error"] = self.error
        return message


def parse_envelope(raw: str) -> Envelope:
    """
    Decode one inbound text frame.

    Raises:
        MalformedEnvelopeError: Not JSON, not an object, or no string `type`.
    """
    try:
        return Envelope.model_validate_json(raw)
    except ValidationError as e:
        raise MalformedEnvelopeError(
            "Malformed envelope",
            errors=e.error_count(),
        ) from e


def success(message_type: str, data: Any = None) -> dict[str, Any]:
    """Build a SUCCESS reply."""
    return Envelope(type=message_type, result=MessageResult.SUCCESS, data=data).to_wire()


def failure(message_type: str, error: str, data: Any = None) -> dict[str, Any]:
    """Build an ERROR reply."""
    return Envelope(
        type=message_type,
        result=MessageResult.ERROR,
        error=error,
        data=data,
    ).to_wire()


def records_message(records: list[Any]) -> dict[str, Any]:
    """
    RECORDS broadcast.

    Built as a plain dict so an empty list is still sent as `"data": []`.
    """
    return {"type": MessageType.RECORDS, "data": records}
