"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get(
    "/metrics",
    response_class=Response,
    summary="Prometheus metrics endpoint",
    tags=["metrics"],
)
async def metrics() -> Response:
    """
    Expose relay metrics in the Prometheus text exposition format.

    Example:
        ```
        # HELP frames_forwarded_total Frames forwarded to the analysis backend
        # TYPE frames_forwarded_total counter
        frames_forwarded_total 42.0
        ```
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
