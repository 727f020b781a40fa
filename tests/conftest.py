"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures for client connections, the client
registry and the upstream link.
"""

import os

import pytest

# Keep test output quiet and independent from a developer's environment
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("UPSTREAM_WS_URL", "ws://backend.test/ws")

from frame_relay.managers.client_registry import ClientRegistry
from frame_relay.managers.relay_hub import RelayHub
from tests.mocks.websocket_mocks import (
    FakeUpstreamConnection,
    create_mock_upstream_link,
    create_mock_websocket,
)


@pytest.fixture
def frame_envelope():
    """
    Provides a frame envelope as produced by the browser client.

    Returns:
        dict: Frame envelope
    """
    return {
        "type": "frame",
        "data": "data:image/jpeg;base64,/9j/4AAQSkZJRgABAQAAAQABAAD",
        "timestamp": 1712345678901,
        "dimensions": {"width": 640, "height": 480},
    }


@pytest.fixture
def analysis_envelope():
    """
    Provides an analysis envelope as produced by the backend.

    Returns:
        dict: Analysis envelope
    """
    return {"type": "analysis", "data": {"mean_intensity": 120}}


@pytest.fixture
def registry():
    """
    Provides an empty ClientRegistry with a short send timeout.

    Returns:
        ClientRegistry: Registry instance
    """
    return ClientRegistry(send_timeout=0.2)


@pytest.fixture
def mock_websocket():
    """
    Provides a factory for open mock client connections.

    Returns:
        Callable: Factory returning a new mocked WebSocket per call
    """
    return create_mock_websocket


@pytest.fixture
def mock_link():
    """
    Provides a connected mock UpstreamLink.

    Returns:
        MagicMock: Mocked UpstreamLink
    """
    return create_mock_upstream_link(connected=True)


@pytest.fixture
def hub(registry, mock_link):
    """
    Provides a RelayHub wired to a fresh registry and a mock link.

    Returns:
        RelayHub: Hub instance
    """
    return RelayHub(registry=registry, link=mock_link)


@pytest.fixture
def fake_upstream():
    """
    Provides an in-memory backend connection.

    Returns:
        FakeUpstreamConnection: Fake connection instance
    """
    return FakeUpstreamConnection()
