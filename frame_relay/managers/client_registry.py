import asyncio
import time

from starlette import status
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from frame_relay.constants import WS_CLOSE_TIMEOUT_SECONDS, WS_GOING_AWAY_CODE
from frame_relay.logging import logger
from frame_relay.schemas.envelope import Envelope, encode_envelope
from frame_relay.settings import app_settings
from frame_relay.utils.metrics import MetricsCollector, broadcast_duration_seconds


def is_open(websocket: WebSocket) -> bool:
    """Check whether both sides of the connection still consider it open."""
    return (
        websocket.client_state == WebSocketState.CONNECTED
        and websocket.application_state == WebSocketState.CONNECTED
    )


class ClientRegistry:
    """
    Registry of connected downstream WebSocket clients.

    Connections are keyed by identity. All mutation happens on the event
    loop, and broadcast iterates over a snapshot, so registering or
    unregistering during a broadcast never affects the iteration in progress.
    """

    def __init__(self, send_timeout: float | None = None) -> None:
        """
        Initializes an empty registry.

        Args:
            send_timeout: Upper bound in seconds for a single send to one
                client. Defaults to WS_SEND_TIMEOUT_SECONDS.
        """
        self.connections: set[WebSocket] = set()
        self.send_timeout = (
            send_timeout
            if send_timeout is not None
            else app_settings.WS_SEND_TIMEOUT_SECONDS
        )

    def register(self, websocket: WebSocket) -> None:
        """
        Adds a client connection.

        Args:
            websocket: The accepted WebSocket connection.
        """
        self.connections.add(websocket)
        logger.info(f"Client connected. Total: {self.size()}")

    def unregister(self, websocket: WebSocket) -> None:
        """
        Removes a client connection. Removing an unknown connection is a no-op.

        Args:
            websocket: The WebSocket connection to remove.
        """
        if websocket not in self.connections:
            return

        self.connections.discard(websocket)
        logger.info(f"Client disconnected. Total: {self.size()}")

    def size(self) -> int:
        return len(self.connections)

    def __contains__(self, websocket: object) -> bool:
        return websocket in self.connections

    async def _send(self, websocket: WebSocket, text: str) -> bool:
        """
        Sends text to one client, unregistering and closing it on failure.

        Returns:
            True if the message was handed to the transport.
        """
        try:
            await asyncio.wait_for(
                websocket.send_text(text), timeout=self.send_timeout
            )
            return True
        except (WebSocketDisconnect, ConnectionError, RuntimeError) as e:
            # WebSocketDisconnect: Client disconnected
            # ConnectionError: Network errors
            # RuntimeError: WebSocket in invalid state
            logger.warning(
                f"Failed to send to connection {id(websocket)}: {e!r}"
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Send to connection {id(websocket)} timed out after "
                f"{self.send_timeout}s"
            )
        except Exception as e:
            logger.warning(
                f"Unexpected error sending to connection {id(websocket)}: {e!r}"
            )

        MetricsCollector.record_broadcast_failure()
        self.unregister(websocket)
        # Ends the endpoint receive loop so on_disconnect runs
        await self._close_quietly(websocket, status.WS_1011_INTERNAL_ERROR)
        return False

    async def _close_quietly(self, websocket: WebSocket, code: int) -> None:
        if websocket.application_state == WebSocketState.DISCONNECTED:
            return
        try:
            await asyncio.wait_for(
                websocket.close(code=code),
                timeout=WS_CLOSE_TIMEOUT_SECONDS,
            )
        except Exception as e:
            logger.debug(
                f"Error closing connection {id(websocket)}: {e!r}"
            )

    async def send_personal(
        self, websocket: WebSocket, envelope: Envelope
    ) -> bool:
        """
        Sends an envelope to a single client.

        Args:
            websocket: Target connection.
            envelope: The message to send.

        Returns:
            True if the message was delivered.
        """
        if not is_open(websocket):
            return False

        delivered = await self._send(websocket, encode_envelope(envelope))
        if delivered:
            MetricsCollector.record_ws_messages_sent()
        return delivered

    async def broadcast(self, envelope: Envelope) -> int:
        """
        Sends an envelope to every registered client concurrently.

        The envelope is serialized once. Connections that are no longer open
        are skipped; a failed or timed out send unregisters that connection
        without affecting delivery to the others.

        Args:
            envelope: The message to broadcast.

        Returns:
            Number of clients the message was delivered to.
        """
        if not self.connections:
            return 0

        text = encode_envelope(envelope)
        targets = [ws for ws in list(self.connections) if is_open(ws)]

        start_time = time.perf_counter()
        results = await asyncio.gather(
            *[self._send(ws, text) for ws in targets],
            return_exceptions=True,
        )
        broadcast_duration_seconds.observe(time.perf_counter() - start_time)

        delivered = sum(1 for result in results if result is True)
        MetricsCollector.record_ws_messages_sent(delivered)
        logger.debug(
            f"Broadcast {envelope.get('type')!r} to {delivered}/{len(targets)} clients"
        )
        return delivered

    async def close_all(self, code: int = WS_GOING_AWAY_CODE) -> None:
        """
        Closes every registered connection and empties the registry.

        Args:
            code: WebSocket close code sent to clients.
        """
        connections = list(self.connections)
        self.connections.clear()

        await asyncio.gather(
            *[self._close_quietly(ws, code) for ws in connections],
            return_exceptions=True,
        )
        if connections:
            logger.info(f"Closed {len(connections)} client connections")


client_registry = ClientRegistry()
