"""
Application-level constants for the relay protocol.

These values define the envelope format shared with browser clients and the
analysis backend and should not be changed via environment variables.
For configurable values (addresses, timeouts, delays), see
frame_relay/settings.py.
"""

# ============================================================================
# Envelope types
# ============================================================================

MSG_TYPE_FRAME = "frame"
MSG_TYPE_ERROR = "error"


# ============================================================================
# Error envelopes returned to clients
# ============================================================================

# Frame received while the upstream link is not connected
BACKEND_UNAVAILABLE_MESSAGE = "processing backend unavailable"

# Client message could not be decoded or failed validation
PROCESSING_ERROR_MESSAGE = "error processing message"


# ============================================================================
# WebSocket close codes (RFC 6455)
# ============================================================================

# Sent to every client when the relay shuts down
WS_GOING_AWAY_CODE = 1001

# Timeout (seconds) when closing WebSocket connections during shutdown
WS_CLOSE_TIMEOUT_SECONDS = 5


# ============================================================================
# Health endpoint
# ============================================================================

HEALTH_STATUS_OK = "ok"
