"""
Routing policy between browser clients and the analysis backend.

Frames from any client go to the single upstream link; everything the
backend sends is broadcast to every connected client. The hub does not
track which client a result belongs to: it assumes the backend handles one
frame at a time and answers in submission order.
"""

from typing import Any

from pydantic import ValidationError
from starlette.websockets import WebSocket

from frame_relay.constants import (
    BACKEND_UNAVAILABLE_MESSAGE,
    HEALTH_STATUS_OK,
    MSG_TYPE_FRAME,
    PROCESSING_ERROR_MESSAGE,
)
from frame_relay.exceptions import MalformedMessageError, UpstreamUnavailableError
from frame_relay.logging import logger
from frame_relay.managers.client_registry import ClientRegistry, client_registry
from frame_relay.schemas.envelope import (
    Envelope,
    ErrorMessage,
    FrameMessage,
    decode_envelope,
)
from frame_relay.settings import app_settings
from frame_relay.upstream.link import LinkState, UpstreamLink
from frame_relay.utils.metrics import MetricsCollector


class RelayHub:
    """
    Wires the client registry and the upstream link together.

    Args:
        registry: Registry of connected clients.
        link: The upstream link; its callbacks are bound to this hub.
    """

    def __init__(self, registry: ClientRegistry, link: UpstreamLink) -> None:
        self.registry = registry
        self.link = link
        self.link.on_message = self.handle_upstream_message
        self.link.on_state_change = self.handle_link_state

    # =========================================================================
    # Client -> backend
    # =========================================================================

    async def handle_client_message(
        self, websocket: WebSocket, raw: str | bytes
    ) -> None:
        """
        Routes one message received from a client.

        Frames are forwarded upstream unchanged. Malformed messages and
        frames that cannot be forwarded are answered with an error envelope
        sent to this client only; the connection stays open. Other message
        types are ignored.
        """
        MetricsCollector.record_ws_message_received()

        try:
            envelope = decode_envelope(raw)
            if envelope.get("type") != MSG_TYPE_FRAME:
                logger.debug(
                    f"Ignoring client message of type {envelope.get('type')!r}"
                )
                return

            await self.forward_frame(envelope)
        except MalformedMessageError as ex:
            logger.error(f"Error processing client message: {ex}")
            MetricsCollector.record_frame_rejected("malformed")
            await self.registry.send_personal(
                websocket, ErrorMessage.envelope(PROCESSING_ERROR_MESSAGE)
            )
        except UpstreamUnavailableError:
            logger.debug("Frame rejected, upstream backend unavailable")
            MetricsCollector.record_frame_rejected("backend_unavailable")
            await self.registry.send_personal(
                websocket, ErrorMessage.envelope(BACKEND_UNAVAILABLE_MESSAGE)
            )

    async def forward_frame(self, envelope: Envelope) -> None:
        """
        Validates a frame envelope and sends it upstream as received.

        Raises:
            MalformedMessageError: The frame does not match FrameMessage.
            UpstreamUnavailableError: The link is down or the send failed.
        """
        try:
            FrameMessage.model_validate(envelope)
        except ValidationError as ex:
            raise MalformedMessageError(
                f"invalid frame: {ex.error_count()} validation error(s)"
            ) from ex

        if not self.link.is_connected or not await self.link.send(envelope):
            raise UpstreamUnavailableError(self.link.url)

        MetricsCollector.record_frame_forwarded()

    # =========================================================================
    # Backend -> clients
    # =========================================================================

    async def handle_upstream_message(self, envelope: Envelope) -> None:
        """Broadcasts a backend envelope, unchanged, to every connected client."""
        await self.registry.broadcast(envelope)

    def handle_link_state(self, state: LinkState) -> None:
        if state == LinkState.CONNECTED:
            logger.info(
                f"Upstream backend available, {self.registry.size()} clients connected"
            )
        elif state == LinkState.DISCONNECTED:
            logger.warning("Upstream backend unavailable")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        self.link.start()

    async def stop(self) -> None:
        """Closes the upstream link and every client connection."""
        await self.link.close()
        await self.registry.close_all()

    def status(self) -> dict[str, Any]:
        return {
            "status": HEALTH_STATUS_OK,
            "clients": self.registry.size(),
            "pythonConnected": self.link.is_connected,
        }


relay_hub = RelayHub(
    registry=client_registry,
    link=UpstreamLink(app_settings.UPSTREAM_WS_URL),
)
