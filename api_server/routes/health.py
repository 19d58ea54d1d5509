"""Health check endpoint"""

from datetime import datetime, timezone
from fastapi import APIRouter, Request

router = APIRouter()

VERSION = "2.0.0"


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint

    Returns:
        Health status with timestamp, version and number of live debates
    """
    store = getattr(request.app.state, "store", None)
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
        "active_debates": store.active_debate_count if store else 0,
    }
