import uuid
from typing import Any

from starlette import status
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket, WebSocketDisconnect

from frame_relay.logging import clear_log_context, logger, set_log_context
from frame_relay.managers.relay_hub import RelayHub, relay_hub
from frame_relay.middlewares.correlation_id import correlation_id
from frame_relay.utils.metrics import MetricsCollector


class RelayWebSocketEndpoint(WebSocketEndpoint):  # type: ignore[misc]
    """
    WebSocket endpoint that registers clients with the relay hub.

    Manages the connection lifecycle: the connection is registered with
    the hub's client registry on connect and removed on disconnect,
    whatever the reason (normal close, transport error or exception in a
    handler). Accepts both text and binary frames.
    """

    encoding = None  # Handle both text and binary payloads
    websocket_class: type[WebSocket] = WebSocket
    hub: RelayHub = relay_hub

    async def dispatch(self) -> None:
        """
        Runs the receive loop for one client connection.

        The steps are:
        1. Accept and register the connection (on_connect).
        2. Pass every received payload to on_receive, one at a time, so
           messages from one client are handled in the order they arrive.
        3. Stop on a disconnect message.
        4. Always call on_disconnect, with close code 1011 if an exception
           escaped the loop.
        """
        websocket = self.websocket_class(
            self.scope, receive=self.receive, send=self.send
        )
        await self.on_connect(websocket)  # type: ignore[no-untyped-call]

        close_code = status.WS_1000_NORMAL_CLOSURE

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.receive":
                    data = await self.decode(websocket, message)
                    await self.on_receive(websocket, data)
                elif message["type"] == "websocket.disconnect":
                    close_code = int(
                        message.get("code") or status.WS_1000_NORMAL_CLOSURE
                    )
                    break
        except WebSocketDisconnect as exc:
            close_code = exc.code
        except Exception as exc:
            close_code = status.WS_1011_INTERNAL_ERROR
            raise exc
        finally:
            await self.on_disconnect(websocket, close_code)  # type: ignore[no-untyped-call]

    async def decode(
        self, websocket: WebSocket, message: dict[str, Any]
    ) -> str | bytes:
        """
        Return the raw payload; JSON decoding is the hub's job so that
        malformed messages can be answered instead of closing the socket.
        """
        if message.get("text") is not None:
            return message["text"]
        return message.get("bytes") or b""

    async def on_connect(self, websocket):  # type: ignore[no-untyped-def]
        """
        Accepts the connection and registers it with the client registry.

        The connection ID doubles as the logging correlation ID unless the
        upgrade request carried an X-Correlation-ID header.
        """
        await super().on_connect(websocket)

        self.connection_id = str(uuid.uuid4())
        if not correlation_id.get():
            correlation_id.set(self.connection_id[:8])
        set_log_context(connection_id=self.connection_id)

        self.hub.registry.register(websocket)
        MetricsCollector.record_ws_connection_accepted()
        logger.debug(
            f"Client connected to websocket (connection_id: {self.connection_id})"
        )

    async def on_disconnect(self, websocket, close_code):  # type: ignore[no-untyped-def]
        """Unregisters the connection and releases per-connection state."""
        await super().on_disconnect(websocket, close_code)

        self.hub.registry.unregister(websocket)
        MetricsCollector.record_ws_disconnection()
        logger.debug(
            f"Client {getattr(self, 'connection_id', '?')} disconnected "
            f"with code {close_code}"
        )
        clear_log_context()
