"""
Single persistent connection to the analysis backend.

The link is driven by one control task (`run`) that connects, pumps
received messages to the relay hub and, whenever the connection is lost or
cannot be established, waits a fixed delay before trying again. Because
every state transition happens on that task, there is never more than one
connection attempt in flight.
"""

import asyncio
from asyncio import CancelledError, sleep
from enum import IntEnum
from typing import Any, Awaitable, Callable

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from frame_relay.exceptions import MalformedMessageError
from frame_relay.logging import logger
from frame_relay.schemas.envelope import Envelope, decode_envelope, encode_envelope
from frame_relay.settings import app_settings
from frame_relay.utils.metrics import MetricsCollector

MessageHandler = Callable[[Envelope], Awaitable[None]]
StateHandler = Callable[["LinkState"], None]
Connector = Callable[..., Awaitable[Any]]


class LinkState(IntEnum):
    DISCONNECTED = 0
    CONNECTING = 1
    CONNECTED = 2


class UpstreamLink:
    """
    Owns the single logical connection to the analysis backend.

    Attributes:
        url: Backend WebSocket address (ws:// or wss://).
        reconnect_delay: Fixed delay in seconds between connection attempts.
        connect_timeout: Upper bound in seconds for one connection attempt.
        reconnect_attempts: Reconnects scheduled since the last successful
            connection.
        on_message: Coroutine called with every well-formed envelope
            received from the backend.
        on_state_change: Called with the new state on every transition.
    """

    def __init__(
        self,
        url: str,
        reconnect_delay: float | None = None,
        connect_timeout: float | None = None,
        connector: Connector | None = None,
    ) -> None:
        self.url = url
        self.reconnect_delay = (
            reconnect_delay
            if reconnect_delay is not None
            else app_settings.UPSTREAM_RECONNECT_DELAY_SECONDS
        )
        self.connect_timeout = (
            connect_timeout
            if connect_timeout is not None
            else app_settings.UPSTREAM_CONNECT_TIMEOUT_SECONDS
        )
        self._connector: Connector = connector or connect

        self._ws: ClientConnection | None = None
        self._state = LinkState.DISCONNECTED
        self._task: asyncio.Task[None] | None = None

        self.reconnect_attempts = 0
        self.on_message: MessageHandler | None = None
        self.on_state_change: StateHandler | None = None

    @property
    def state(self) -> LinkState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == LinkState.CONNECTED

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _set_state(self, state: LinkState) -> None:
        if state == self._state:
            return

        previous, self._state = self._state, state
        MetricsCollector.record_upstream_state(int(state))
        logger.debug(f"Upstream link {previous.name} -> {state.name}")

        if self.on_state_change is not None:
            self.on_state_change(state)

    # =========================================================================
    # Connection management
    # =========================================================================

    async def connect(self) -> bool:
        """
        Makes one connection attempt to the backend.

        Does nothing if an attempt is already in flight or the link is
        already connected.

        Returns:
            True if the link is connected when the call returns.
        """
        if self._state != LinkState.DISCONNECTED:
            return self.is_connected

        self._set_state(LinkState.CONNECTING)
        logger.info(f"Connecting to upstream backend at {self.url}")

        try:
            self._ws = await self._connector(
                self.url, open_timeout=self.connect_timeout
            )
        except (OSError, TimeoutError, WebSocketException) as ex:
            logger.error(f"Upstream connection error: {ex!r}")
            MetricsCollector.record_upstream_connect_attempt(success=False)
            self._set_state(LinkState.DISCONNECTED)
            return False
        except Exception as ex:
            logger.exception(f"Unexpected upstream connection error: {ex!r}")
            MetricsCollector.record_upstream_connect_attempt(success=False)
            self._set_state(LinkState.DISCONNECTED)
            return False

        MetricsCollector.record_upstream_connect_attempt(success=True)
        self.reconnect_attempts = 0
        self._set_state(LinkState.CONNECTED)
        logger.info("Connected to upstream backend")
        return True

    async def _drop_connection(self) -> None:
        """Closes the current socket, if any, and marks the link disconnected."""
        ws, self._ws = self._ws, None
        if ws is not None:
            try:
                await ws.close()
            except (ConnectionClosed, OSError) as ex:
                logger.debug(f"Error closing upstream socket: {ex!r}")

        self._set_state(LinkState.DISCONNECTED)

    async def send(self, envelope: Envelope) -> bool:
        """
        Sends an envelope to the backend.

        Args:
            envelope: The message to send.

        Returns:
            False without sending if the link is not connected or the
            transport fails; True once the message was handed to the socket.
        """
        ws = self._ws
        if self._state != LinkState.CONNECTED or ws is None:
            return False

        try:
            await ws.send(encode_envelope(envelope))
        except (ConnectionClosed, OSError) as ex:
            logger.warning(f"Failed to send to upstream backend: {ex!r}")
            return False

        return True

    # =========================================================================
    # Background control task
    # =========================================================================

    async def _handle_raw(self, raw: str | bytes) -> None:
        try:
            envelope = decode_envelope(raw)
        except MalformedMessageError as ex:
            logger.error(f"Error parsing upstream response: {ex}")
            MetricsCollector.record_upstream_message(dropped=True)
            return

        MetricsCollector.record_upstream_message()

        if self.on_message is None:
            return

        try:
            await self.on_message(envelope)
        except CancelledError:
            raise
        except Exception as ex:
            logger.exception(f"Upstream message handler failed: {ex!r}")

    async def _receive_loop(self) -> None:
        """Delivers backend messages in arrival order until the socket closes."""
        ws = self._ws
        if ws is None:
            return

        try:
            async for raw in ws:
                await self._handle_raw(raw)
            logger.info("Upstream connection closed")
        except (ConnectionClosed, OSError) as ex:
            logger.error(f"Upstream connection lost: {ex!r}")

        MetricsCollector.record_upstream_disconnect()

    async def run(self) -> None:
        """
        Connect, receive, reconnect. Runs until cancelled.

        Every failed attempt and every lost connection schedules exactly one
        new attempt after `reconnect_delay` seconds; there is no retry limit.
        """
        while True:
            try:
                if await self.connect():
                    await self._receive_loop()
            except CancelledError:
                raise
            except Exception as ex:
                logger.exception(f"Upstream link loop failed: {ex!r}")
            finally:
                await self._drop_connection()

            self.reconnect_attempts += 1
            logger.info(
                f"Reconnecting to upstream in {self.reconnect_delay}s "
                f"(attempt {self.reconnect_attempts})"
            )
            await sleep(self.reconnect_delay)

    def start(self) -> None:
        """Starts the control task. No-op if it is already running."""
        if self.is_running:
            return

        self._task = asyncio.create_task(self.run(), name="upstream_link")

    async def close(self) -> None:
        """Cancels the control task, including a pending reconnect wait, and closes the socket."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        await self._drop_connection()
        logger.info("Upstream link closed")
