"""Prometheus metrics for the upstream analysis backend link."""

from frame_relay.utils.metrics._helpers import (
    _get_or_create_counter,
    _get_or_create_gauge,
)

# 0 = disconnected, 1 = connecting, 2 = connected
upstream_state = _get_or_create_gauge(
    "upstream_state", "Upstream link state (0=disconnected, 1=connecting, 2=connected)"
)

upstream_connect_attempts_total = _get_or_create_counter(
    "upstream_connect_attempts_total",
    "Upstream connection attempts",
    ["result"],  # success, failure
)

upstream_disconnects_total = _get_or_create_counter(
    "upstream_disconnects_total", "Upstream connections lost after being established"
)

upstream_messages_received_total = _get_or_create_counter(
    "upstream_messages_received_total", "Well-formed messages received from the backend"
)

upstream_messages_dropped_total = _get_or_create_counter(
    "upstream_messages_dropped_total", "Malformed backend messages that were dropped"
)

__all__ = [
    "upstream_state",
    "upstream_connect_attempts_total",
    "upstream_disconnects_total",
    "upstream_messages_received_total",
    "upstream_messages_dropped_total",
]
