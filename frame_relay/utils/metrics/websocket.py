"""
Prometheus metrics for downstream WebSocket clients.

Tracks client connections, message counts, frame routing outcomes and
broadcast delivery failures.
"""

from frame_relay.utils.metrics._helpers import (
    _get_or_create_counter,
    _get_or_create_gauge,
    _get_or_create_histogram,
)

# WebSocket Connection Metrics
ws_connections_active = _get_or_create_gauge(
    "ws_connections_active", "Number of active client WebSocket connections"
)

ws_connections_total = _get_or_create_counter(
    "ws_connections_total",
    "Total client WebSocket connections",
    ["status"],  # accepted, closed
)

ws_messages_received_total = _get_or_create_counter(
    "ws_messages_received_total", "Total messages received from clients"
)

ws_messages_sent_total = _get_or_create_counter(
    "ws_messages_sent_total", "Total messages delivered to clients"
)

# Frame routing
frames_forwarded_total = _get_or_create_counter(
    "frames_forwarded_total", "Frames forwarded to the analysis backend"
)

frames_rejected_total = _get_or_create_counter(
    "frames_rejected_total",
    "Client messages answered with an error envelope",
    ["reason"],  # backend_unavailable, malformed
)

# Broadcast
broadcast_failures_total = _get_or_create_counter(
    "broadcast_failures_total",
    "Per-client send failures during broadcast (client was unregistered)",
)

broadcast_duration_seconds = _get_or_create_histogram(
    "broadcast_duration_seconds",
    "Time spent delivering one envelope to all clients",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0),
)


__all__ = [
    "ws_connections_active",
    "ws_connections_total",
    "ws_messages_received_total",
    "ws_messages_sent_total",
    "frames_forwarded_total",
    "frames_rejected_total",
    "broadcast_failures_total",
    "broadcast_duration_seconds",
]
