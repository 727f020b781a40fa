"""
Envelope models for the relay wire protocol.

Every message exchanged with browser clients and the analysis backend is a
JSON object tagged by its `type` field.
"""

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from frame_relay.constants import MSG_TYPE_ERROR, MSG_TYPE_FRAME
from frame_relay.exceptions import MalformedMessageError

Envelope = dict[str, Any]


class Dimensions(BaseModel):  # type: ignore[misc]
    width: int = Field(ge=0)
    height: int = Field(ge=0)


class FrameMessage(BaseModel):  # type: ignore[misc]
    """
    A frame captured by a browser client.

    Only used for validation; the original payload is what gets forwarded,
    including any fields this model does not know about.
    """

    model_config = ConfigDict(extra="allow")

    type: Literal["frame"] = MSG_TYPE_FRAME
    data: StrictStr
    timestamp: float
    dimensions: Dimensions


class ErrorMessage(BaseModel):  # type: ignore[misc]
    type: Literal["error"] = MSG_TYPE_ERROR
    message: str

    @classmethod
    def envelope(cls, message: str) -> Envelope:
        """Build a ready-to-send error envelope."""
        return cls(message=message).model_dump()


def decode_envelope(raw: str | bytes) -> Envelope:
    """
    Decode a raw WebSocket payload into an envelope.

    Args:
        raw: Text payload, or binary payload holding UTF-8 JSON.

    Returns:
        The decoded JSON object.

    Raises:
        MalformedMessageError: If the payload is not UTF-8, not JSON, or
            not a JSON object.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as ex:
            raise MalformedMessageError(f"payload is not UTF-8: {ex}") from ex

    try:
        decoded = json.loads(raw)
    except (ValueError, RecursionError) as ex:
        # ValueError covers JSONDecodeError and oversized integer literals;
        # RecursionError comes from pathologically deep nesting
        raise MalformedMessageError(f"invalid JSON: {ex!r:.200}") from ex

    if not isinstance(decoded, dict):
        raise MalformedMessageError(
            f"expected a JSON object, got {type(decoded).__name__}"
        )

    return decoded


def encode_envelope(envelope: Envelope) -> str:
    """Serialize an envelope to compact JSON text."""
    return json.dumps(envelope, separators=(",", ":"))
