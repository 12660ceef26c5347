"""Health check endpoint."""

from fastapi import APIRouter, Request
from datetime import datetime, timezone

from .. import __version__

router = APIRouter()


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z"


@router.get("/")
async def health_check(request: Request):
    """Basic health check. Does not call the upstream model."""
    client = getattr(request.app.state, "client", None)
    return {
        "success": True,
        "data": {
            "status": "healthy",
            "timestamp": _timestamp(),
            "service": "headshot-studio",
            "version": __version__,
            "apiConnected": client is not None and getattr(client, "is_initialized", True),
        },
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness check for container orchestrators."""
    return {
        "ready": getattr(request.app.state, "pipeline", None) is not None,
        "timestamp": _timestamp(),
    }
