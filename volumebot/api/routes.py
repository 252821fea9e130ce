"""
HTTP routes of the Volume Bot health server.
"""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from volumebot.utils.logger import get_logger

logger = get_logger(__name__)

# Create API router
router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root():
    """Liveness probe."""
    return "VolumeBot is running!"


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    store = getattr(request.app.state, "store", None)
    bot = getattr(request.app.state, "bot", None)
    user_ids = store.user_ids() if store is not None else []
    return {
        "status": "healthy",
        "sessions": len(user_ids),
        "busy_sessions": sum(1 for user_id in user_ids if store.is_busy(user_id)),
        "bot_running": bool(bot and bot.is_running),
    }
