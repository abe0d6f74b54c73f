"""Health and system status endpoints."""

from fastapi import APIRouter, Request
from datetime import datetime, timezone

from streamtracker import __version__

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Service health check — reports integration status."""
    integrations = getattr(request.app.state, "integrations", {})
    return {
        "status": "ok",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "integrations": integrations,
    }
