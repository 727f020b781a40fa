"""
Command line interface for the frame relay.

Provides commands for running the relay server, inspecting the effective
configuration and sending a test frame through a running relay.
"""

import asyncio
import json
import time

import typer
import uvicorn
import websockets
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from frame_relay.settings import app_settings

# 1x1 transparent PNG, small enough to pass through any backend quickly
TEST_IMAGE = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)

typer_app = typer.Typer(
    name="frame-relay",
    help="Frame Relay - relay browser video frames to an analysis backend",
    add_completion=False,
)
console = Console()


@typer_app.command(name="serve")
def serve(
    host: str = typer.Option(None, help="Bind address (default: HOST setting)"),
    port: int = typer.Option(None, help="Bind port (default: PORT setting)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """
    Run the relay server with uvicorn.

    Example:
        frame-relay serve --port 3000
    """
    uvicorn.run(
        "frame_relay:application",
        factory=True,
        host=host or app_settings.HOST,
        port=port or app_settings.PORT,
        reload=reload,
        log_level=app_settings.LOG_LEVEL.lower(),
    )


@typer_app.command(name="settings")
def show_settings():
    """Display the effective configuration."""
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Frame Relay Settings[/bold cyan]",
            border_style="cyan",
        )
    )
    console.print()

    table = Table("Setting", "Value", show_lines=True)
    for name, value in app_settings.model_dump().items():
        table.add_row(name, str(value))

    console.print(table)
    console.print()


async def send_test_frame(url: str, timeout: float) -> dict:
    """
    Send one synthetic frame to a relay and return the first reply.

    Args:
        url: Relay WebSocket URL, e.g. ws://localhost:3000/ws
        timeout: Seconds to wait for a reply.

    Returns:
        The decoded reply envelope.
    """
    frame = {
        "type": "frame",
        "data": TEST_IMAGE,
        "timestamp": int(time.time() * 1000),
        "dimensions": {"width": 1, "height": 1},
    }

    async with websockets.connect(url) as websocket:
        await websocket.send(json.dumps(frame))
        reply = await asyncio.wait_for(websocket.recv(), timeout=timeout)

    return json.loads(reply)


@typer_app.command(name="test-frame")
def send_frame(
    url: str = typer.Option(
        None, help="Relay WebSocket URL (default: ws://localhost:PORT/ws)"
    ),
    timeout: float = typer.Option(10.0, help="Seconds to wait for a reply"),
):
    """
    Send one synthetic frame through a running relay and print the reply.

    Example:
        frame-relay test-frame --url ws://localhost:3000/ws
    """
    url = url or f"ws://localhost:{app_settings.PORT}{app_settings.WS_PATH}"
    console.print(f"[cyan]→ Sending test frame to {url}[/cyan]")

    try:
        reply = asyncio.run(send_test_frame(url, timeout))
    except (OSError, asyncio.TimeoutError, websockets.WebSocketException) as ex:
        console.print(f"[bold red]✗ Test frame failed:[/bold red] {ex!r}")
        raise typer.Exit(code=1)

    style = "red" if reply.get("type") == "error" else "green"
    console.print(f"[{style}]← {reply.get('type')}[/{style}]")
    console.print_json(data=reply)


if __name__ == "__main__":
    typer_app()
