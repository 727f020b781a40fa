"""
Middleware for correlation ID tracking.

Assigns a short correlation ID to every HTTP request and every WebSocket
connection so that log lines emitted while serving them can be grouped.
"""

import uuid
from contextvars import ContextVar

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Context variable for storing correlation ID per request / connection
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def new_correlation_id() -> str:
    """Generate an 8-character correlation ID."""
    return str(uuid.uuid4())[:8]


class CorrelationIDMiddleware:
    """
    ASGI middleware that adds correlation IDs to HTTP and WebSocket scopes.

    This middleware:
    - Extracts the correlation ID from the X-Correlation-ID header or
      generates a new 8-char ID
    - Stores it in scope["state"]["request_id"] for endpoints
    - Stores it in a context variable for logging
    - Echoes it in HTTP response headers

    Pure ASGI instead of BaseHTTPMiddleware so WebSocket connections get an
    ID too; the context variable set here stays visible for the whole
    lifetime of the connection task.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        cid = headers.get(CORRELATION_ID_HEADER) or new_correlation_id()
        cid = cid[:8]

        scope.setdefault("state", {})["request_id"] = cid
        correlation_id.set(cid)

        if scope["type"] == "websocket":
            await self.app(scope, receive, send)
            return

        async def send_with_header(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[CORRELATION_ID_HEADER] = cid
            await send(message)

        await self.app(scope, receive, send_with_header)
