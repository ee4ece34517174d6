"""
Health check, status and shutdown endpoints.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from typing import Any, Dict

from webex_bot.api.v1.schemas.meeting import HealthCheckResponse, StatusResponse
from webex_bot.core.dependencies import MeetingBotDep
from webex_bot.core.logging import get_logger

router = APIRouter()
logger = get_logger("api.health")


@router.get("/health", response_model=HealthCheckResponse, tags=["Health"])
async def health_check(bot=MeetingBotDep):
    """
    Health check endpoint.

    Returns:
        200 while the bot is polling, 503 otherwise
    """
    payload = HealthCheckResponse(
        healthy=bot.healthy,
        uptime=round(bot.uptime_seconds, 1),
        messages_processed=bot.ledger.size(),
    )
    return JSONResponse(
        status_code=200 if bot.healthy else 503,
        content=payload.model_dump(),
    )


@router.get("/status", response_model=StatusResponse, tags=["Status"])
async def get_status(bot=MeetingBotDep) -> Dict[str, Any]:
    """
    Get current bot status.

    Returns:
        Running flag, counters, backoff state and recent log lines
    """
    return bot.get_status()


@router.post("/shutdown", tags=["Control"])
async def shutdown(bot=MeetingBotDep) -> Dict[str, Any]:
    """
    Stop polling and end every open session.
    """
    logger.info("Shutdown requested via API")
    archived = await bot.shutdown()
    return {
        "message": "Bot stopped",
        "ended_sessions": [session.meeting_id for session in archived],
    }
