"""
Facade for centralized metrics emission.

Provides high-level methods for recording metrics without exposing
Prometheus implementation details to the relay components.
"""

from frame_relay.utils.metrics.upstream import (
    upstream_connect_attempts_total,
    upstream_disconnects_total,
    upstream_messages_dropped_total,
    upstream_messages_received_total,
    upstream_state,
)
from frame_relay.utils.metrics.websocket import (
    broadcast_failures_total,
    frames_forwarded_total,
    frames_rejected_total,
    ws_connections_active,
    ws_connections_total,
    ws_messages_received_total,
    ws_messages_sent_total,
)


class MetricsCollector:
    """
    Centralized facade for all Prometheus metrics.

    All methods are static for easy use without instantiation.
    """

    # ========== Client WebSocket Metrics ==========

    @staticmethod
    def record_ws_connection_accepted() -> None:
        ws_connections_total.labels(status="accepted").inc()
        ws_connections_active.inc()

    @staticmethod
    def record_ws_disconnection() -> None:
        ws_connections_total.labels(status="closed").inc()
        ws_connections_active.dec()

    @staticmethod
    def record_ws_message_received() -> None:
        ws_messages_received_total.inc()

    @staticmethod
    def record_ws_messages_sent(count: int = 1) -> None:
        if count > 0:
            ws_messages_sent_total.inc(count)

    @staticmethod
    def record_broadcast_failure() -> None:
        broadcast_failures_total.inc()

    # ========== Frame Routing Metrics ==========

    @staticmethod
    def record_frame_forwarded() -> None:
        frames_forwarded_total.inc()

    @staticmethod
    def record_frame_rejected(reason: str) -> None:
        """
        Record a client message answered with an error envelope.

        Args:
            reason: One of 'backend_unavailable', 'malformed'
        """
        frames_rejected_total.labels(reason=reason).inc()

    # ========== Upstream Metrics ==========

    @staticmethod
    def record_upstream_state(state_value: int) -> None:
        upstream_state.set(state_value)

    @staticmethod
    def record_upstream_connect_attempt(success: bool) -> None:
        upstream_connect_attempts_total.labels(
            result="success" if success else "failure"
        ).inc()

    @staticmethod
    def record_upstream_disconnect() -> None:
        upstream_disconnects_total.inc()

    @staticmethod
    def record_upstream_message(dropped: bool = False) -> None:
        if dropped:
            upstream_messages_dropped_total.inc()
        else:
            upstream_messages_received_total.inc()
