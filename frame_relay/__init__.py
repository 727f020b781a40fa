# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from frame_relay.logging import logger
from frame_relay.managers.relay_hub import relay_hub
from frame_relay.middlewares.correlation_id import CorrelationIDMiddleware
from frame_relay.middlewares.prometheus import PrometheusMiddleware
from frame_relay.routing import collect_subrouters
from frame_relay.settings import app_settings
from frame_relay.utils.network import public_host
from frame_relay.uvicorn_filters import install_access_log_filter


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for startup and shutdown.

    Startup:
    - Starts the upstream link control task (first connection attempt
      happens immediately; failures are retried in the background)

    Shutdown:
    - Cancels the upstream link, including any pending reconnect wait
    - Closes every client connection
    """
    logger.info("Application startup: starting relay hub")
    logger.info(f"Upstream analysis backend: {app_settings.UPSTREAM_WS_URL}")
    host = public_host(app_settings.HOST)
    logger.info(f"Health check: http://{host}:{app_settings.PORT}/health")
    logger.info(
        f"Clients connect to ws://{host}:{app_settings.PORT}"
        f"{app_settings.WS_PATH}"
    )
    install_access_log_filter()
    relay_hub.start()

    yield  # Application runs here

    logger.info("Application shutdown: stopping relay hub")
    try:
        await relay_hub.stop()
    except Exception as ex:
        logger.error(f"Error stopping relay hub: {ex}")

    logger.info("Application shutdown complete")


def application() -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    The application serves:
    - The client WebSocket endpoint (WS_PATH, default /ws)
    - /health and /metrics
    - The browser client from STATIC_DIR at /, when the directory exists

    Middlewares (outermost first): CorrelationIDMiddleware, then
    PrometheusMiddleware.
    """
    app = FastAPI(
        title="Frame Relay",
        description="Relays browser video frames to an analysis backend "
        "and broadcasts the results",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Collect routers
    app.include_router(collect_subrouters())

    # Static files go last: a mount at "/" matches every path
    if os.path.isdir(app_settings.STATIC_DIR):
        app.mount(
            "/",
            StaticFiles(directory=app_settings.STATIC_DIR, html=True),
            name="static",
        )
    else:
        logger.warning(
            f"Static directory {app_settings.STATIC_DIR!r} not found, "
            "browser client will not be served"
        )

    # Middlewares (execute in REVERSE order of registration)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(CorrelationIDMiddleware)

    return app
