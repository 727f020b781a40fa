"""
Mock factory functions for relay testing.

Provides mocks for client WebSocket connections, the upstream link and an
in-memory stand-in for the backend WebSocket connection.
"""

import asyncio
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

from starlette.websockets import WebSocket, WebSocketState


def create_mock_websocket(open: bool = True):
    """
    Creates a mock client WebSocket connection.

    Args:
        open: Whether the connection reports itself as open.

    Returns:
        MagicMock: Mocked WebSocket instance
    """
    ws_mock = MagicMock(spec=WebSocket)

    # Send operations
    ws_mock.send_text = AsyncMock()
    ws_mock.send_json = AsyncMock()
    ws_mock.send_bytes = AsyncMock()

    # Connection lifecycle
    ws_mock.accept = AsyncMock()
    ws_mock.close = AsyncMock()

    state = WebSocketState.CONNECTED if open else WebSocketState.DISCONNECTED
    ws_mock.client_state = state
    ws_mock.application_state = state

    return ws_mock


def create_mock_upstream_link(connected: bool = True, send_ok: bool = True):
    """
    Creates a mock UpstreamLink.

    Args:
        connected: Value of `is_connected`.
        send_ok: Value returned by `send`.

    Returns:
        MagicMock: Mocked UpstreamLink instance
    """
    from frame_relay.upstream.link import LinkState, UpstreamLink

    link_mock = MagicMock(spec=UpstreamLink)
    link_mock.url = "ws://backend.test/ws"
    link_mock.is_connected = connected
    link_mock.state = (
        LinkState.CONNECTED if connected else LinkState.DISCONNECTED
    )
    link_mock.send = AsyncMock(return_value=send_ok)
    link_mock.close = AsyncMock()
    link_mock.start = MagicMock()

    return link_mock


class FakeUpstreamConnection:
    """
    In-memory replacement for a websockets client connection.

    Messages pushed with `push` are yielded by async iteration in order;
    `end` finishes the iteration like a clean close, `fail` like a
    transport error.
    """

    _END = object()

    def __init__(self, messages=()):
        self.sent: list[str] = []
        self.closed = False
        self.send_error: BaseException | None = None
        self._incoming: asyncio.Queue = asyncio.Queue()
        for message in messages:
            self.push(message)

    def push(self, message: str | bytes) -> None:
        self._incoming.put_nowait(message)

    def end(self) -> None:
        self._incoming.put_nowait(self._END)

    def fail(self, exc: BaseException) -> None:
        self._incoming.put_nowait(exc)

    async def send(self, text: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(text)

    async def close(self) -> None:
        self.closed = True

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        while True:
            item = await self._incoming.get()
            if item is self._END:
                return
            if isinstance(item, BaseException):
                raise item
            yield item


async def wait_until(
    predicate: Callable[[], bool], timeout: float = 1.0
) -> None:
    """Polls `predicate` on the event loop until it is true or `timeout` expires."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)
