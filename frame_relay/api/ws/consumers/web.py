from fastapi import APIRouter

from frame_relay.api.ws.websocket import RelayWebSocketEndpoint
from frame_relay.settings import app_settings

router = APIRouter()


@router.websocket_route(app_settings.WS_PATH)
class FrameRelayEndpoint(RelayWebSocketEndpoint):
    """
    Browser-facing WebSocket endpoint.

    Clients send frame envelopes and receive every analysis result the
    backend produces, plus error envelopes addressed to them alone.
    """

    async def on_receive(self, websocket, data: str | bytes):
        await self.hub.handle_client_message(websocket, data)
