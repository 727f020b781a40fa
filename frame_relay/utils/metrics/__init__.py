"""
Prometheus metrics definitions and utilities.

Metrics are organized into submodules by subsystem (HTTP, client
WebSocket, upstream link) and re-exported here:

    from frame_relay.utils.metrics import ws_connections_active

Relay components should prefer the MetricsCollector facade:

    from frame_relay.utils.metrics import MetricsCollector
    MetricsCollector.record_frame_forwarded()
"""

from frame_relay.utils.metrics.collector import MetricsCollector
from frame_relay.utils.metrics.http import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)
from frame_relay.utils.metrics.upstream import (
    upstream_connect_attempts_total,
    upstream_disconnects_total,
    upstream_messages_dropped_total,
    upstream_messages_received_total,
    upstream_state,
)
from frame_relay.utils.metrics.websocket import (
    broadcast_duration_seconds,
    broadcast_failures_total,
    frames_forwarded_total,
    frames_rejected_total,
    ws_connections_active,
    ws_connections_total,
    ws_messages_received_total,
    ws_messages_sent_total,
)

__all__ = [
    "MetricsCollector",
    # HTTP metrics
    "http_requests_total",
    "http_request_duration_seconds",
    "http_requests_in_progress",
    # Client WebSocket metrics
    "ws_connections_active",
    "ws_connections_total",
    "ws_messages_received_total",
    "ws_messages_sent_total",
    "frames_forwarded_total",
    "frames_rejected_total",
    "broadcast_failures_total",
    "broadcast_duration_seconds",
    # Upstream metrics
    "upstream_state",
    "upstream_connect_attempts_total",
    "upstream_disconnects_total",
    "upstream_messages_received_total",
    "upstream_messages_dropped_total",
]
