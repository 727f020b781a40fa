"""
Custom exception classes for the relay.

None of these are fatal: they are raised at the edges of message handling
and converted into error envelopes or log lines by the relay hub.
"""


class RelayError(Exception):
    """Base class for relay errors."""

    pass


class MalformedMessageError(RelayError):
    """
    Payload could not be decoded into an envelope.

    Raised for invalid JSON, JSON that is not an object, undecodable binary
    payloads and frames that fail schema validation.
    """

    pass


class UpstreamUnavailableError(RelayError):
    """
    Upstream analysis backend is not connected.

    Raised when a frame cannot be forwarded because the upstream link is
    not in the connected state or the send failed.
    """

    pass
