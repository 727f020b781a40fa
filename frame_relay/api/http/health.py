"""Health check endpoint for monitoring relay status."""

from fastapi import APIRouter, status
from pydantic import BaseModel, ConfigDict, Field

from frame_relay.managers.relay_hub import relay_hub

router = APIRouter()


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    clients: int
    python_connected: bool = Field(alias="pythonConnected")


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    tags=["health"],
)
async def health_check() -> HealthResponse:
    """
    Report relay status.

    Always answers 200 while the process is up: a disconnected backend is
    reported through `pythonConnected`, not as a failed health check,
    because the relay keeps serving clients and reconnecting on its own.

    Returns:
        HealthResponse: Status, number of connected clients and whether
        the upstream analysis backend is connected.
    """
    return HealthResponse.model_validate(relay_hub.status())
