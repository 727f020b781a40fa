"""
WebSocket endpoint tests.

This module tests the client connection lifecycle (registration and
unregistration) and message routing through the relay endpoint.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from frame_relay.api.ws.consumers.web import FrameRelayEndpoint, router
from frame_relay.api.ws.websocket import RelayWebSocketEndpoint
from frame_relay.constants import (
    BACKEND_UNAVAILABLE_MESSAGE,
    PROCESSING_ERROR_MESSAGE,
)
from frame_relay.logging import get_log_context
from frame_relay.managers.client_registry import ClientRegistry
from frame_relay.managers.relay_hub import RelayHub
from tests.mocks.websocket_mocks import create_mock_upstream_link


@pytest.fixture
def test_hub():
    """
    Provides a hub with a fresh registry and a connected mock link.

    Returns:
        RelayHub: Hub used by the endpoint for the duration of a test
    """
    return RelayHub(
        registry=ClientRegistry(send_timeout=1.0),
        link=create_mock_upstream_link(connected=True),
    )


@pytest.fixture
def client(test_hub):
    """
    Provides a TestClient for an app serving only the relay endpoint.

    Returns:
        TestClient: FastAPI test client instance
    """
    app = FastAPI()
    app.include_router(router)

    with patch.object(FrameRelayEndpoint, "hub", test_hub):
        yield TestClient(app)


class TestConnectionLifecycle:
    """Tests for registration on connect and unregistration on disconnect."""

    def test_connect_registers_client(self, client, test_hub):
        with client.websocket_connect("/ws"):
            assert test_hub.registry.size() == 1

    def test_disconnect_unregisters_client(self, client, test_hub):
        with client.websocket_connect("/ws"):
            pass

        assert test_hub.registry.size() == 0

    def test_multiple_clients(self, client, test_hub):
        with client.websocket_connect("/ws"):
            with client.websocket_connect("/ws"):
                assert test_hub.registry.size() == 2
            assert test_hub.registry.size() == 1

        assert test_hub.registry.size() == 0

    def test_unknown_path_rejected(self, client):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/other"):
                pass


class TestMessageRouting:
    """Tests for message handling over a live connection."""

    def test_frame_forwarded_upstream(self, client, test_hub, frame_envelope):
        with client.websocket_connect("/ws") as ws:
            ws.send_text(json.dumps(frame_envelope))
            # Round trip a malformed message to know the frame was handled
            ws.send_text("sync")
            ws.receive_json()

        test_hub.link.send.assert_awaited_once_with(frame_envelope)

    def test_frame_as_binary_forwarded(self, client, test_hub, frame_envelope):
        with client.websocket_connect("/ws") as ws:
            ws.send_bytes(json.dumps(frame_envelope).encode("utf-8"))
            ws.send_text("sync")
            ws.receive_json()

        test_hub.link.send.assert_awaited_once_with(frame_envelope)

    def test_frame_while_backend_down(self, client, test_hub, frame_envelope):
        test_hub.link.is_connected = False

        with client.websocket_connect("/ws") as ws:
            ws.send_text(json.dumps(frame_envelope))
            reply = ws.receive_json()

        assert reply == {"type": "error", "message": BACKEND_UNAVAILABLE_MESSAGE}
        test_hub.link.send.assert_not_awaited()

    def test_malformed_message_keeps_connection_open(
        self, client, test_hub, frame_envelope
    ):
        test_hub.link.is_connected = False

        with client.websocket_connect("/ws") as ws:
            ws.send_text("{not json")
            first = ws.receive_json()

            ws.send_text(json.dumps(frame_envelope))
            second = ws.receive_json()

            assert test_hub.registry.size() == 1

        assert first == {"type": "error", "message": PROCESSING_ERROR_MESSAGE}
        assert second == {"type": "error", "message": BACKEND_UNAVAILABLE_MESSAGE}

    def test_upstream_result_broadcast_to_clients(
        self, client, test_hub, analysis_envelope
    ):
        with client.websocket_connect("/ws") as ws1:
            with client.websocket_connect("/ws") as ws2:
                with client._portal_factory() as portal:
                    portal.call(
                        test_hub.handle_upstream_message, analysis_envelope
                    )

                assert ws1.receive_json() == analysis_envelope
                assert ws2.receive_json() == analysis_envelope


class TestEndpointUnit:
    """Tests calling the endpoint hooks directly."""

    @pytest.mark.asyncio
    async def test_on_connect_accepts_and_registers(
        self, test_hub, mock_websocket
    ):
        scope = {"type": "websocket"}
        endpoint = FrameRelayEndpoint(scope=scope, receive=None, send=None)  # type: ignore
        ws = mock_websocket()

        with patch.object(FrameRelayEndpoint, "hub", test_hub):
            await endpoint.on_connect(ws)

        ws.accept.assert_awaited_once()
        assert ws in test_hub.registry
        assert get_log_context()["connection_id"] == endpoint.connection_id

    @pytest.mark.asyncio
    async def test_on_disconnect_unregisters_and_clears_context(
        self, test_hub, mock_websocket
    ):
        scope = {"type": "websocket"}
        endpoint = FrameRelayEndpoint(scope=scope, receive=None, send=None)  # type: ignore
        ws = mock_websocket()

        with patch.object(FrameRelayEndpoint, "hub", test_hub):
            await endpoint.on_connect(ws)
            await endpoint.on_disconnect(ws, 1000)
            await endpoint.on_disconnect(ws, 1000)

        assert test_hub.registry.size() == 0
        assert get_log_context() == {}

    @pytest.mark.asyncio
    async def test_on_receive_delegates_to_hub(self, mock_websocket):
        hub = MagicMock(spec=RelayHub)
        scope = {"type": "websocket"}
        endpoint = FrameRelayEndpoint(scope=scope, receive=None, send=None)  # type: ignore
        ws = mock_websocket()

        with patch.object(FrameRelayEndpoint, "hub", hub):
            await endpoint.on_receive(ws, "payload")

        hub.handle_client_message.assert_awaited_once_with(ws, "payload")

    @pytest.mark.asyncio
    async def test_decode_returns_raw_payload(self):
        endpoint = RelayWebSocketEndpoint(
            scope={"type": "websocket"}, receive=None, send=None  # type: ignore
        )

        text = await endpoint.decode(None, {"type": "websocket.receive", "text": "{}"})
        data = await endpoint.decode(None, {"type": "websocket.receive", "bytes": b"{}"})

        assert text == "{}"
        assert data == b"{}"
