"""
Meeting session endpoints (list, transcript, manual join, end).
"""

from fastapi import APIRouter
from typing import Any, Dict, List

from webex_bot.api.v1.schemas.meeting import (
    ManualJoinRequest,
    ManualJoinResponse,
    SessionResponse,
    TranscriptResponse,
)
from webex_bot.core.dependencies import MeetingBotDep
from webex_bot.core.exceptions import HTTPBadRequest, HTTPNotFound, SessionNotFoundError
from webex_bot.core.logging import get_logger

router = APIRouter()
logger = get_logger("api.meetings")


@router.get("", response_model=List[SessionResponse], tags=["Meetings"])
async def list_sessions(bot=MeetingBotDep) -> List[Dict[str, Any]]:
    """
    List active meeting sessions.
    """
    return bot.list_sessions()


@router.get("/archive", response_model=List[SessionResponse], tags=["Meetings"])
async def list_archived_sessions(bot=MeetingBotDep) -> List[Dict[str, Any]]:
    """
    List ended meeting sessions.
    """
    return bot.list_archived_sessions()


@router.post("/join", response_model=ManualJoinResponse, tags=["Meetings"])
async def manual_join(
    request: ManualJoinRequest,
    bot=MeetingBotDep
) -> Dict[str, Any]:
    """
    Manually join a meeting by providing the meeting URL.

    Args:
        request: Manual join request with meeting_url and optional room_id
        bot: Meeting bot service (injected)

    Returns:
        The session that was created or was already active
    """
    if not request.meeting_url or not request.meeting_url.strip():
        raise HTTPBadRequest("Meeting URL required")

    result = await bot.manual_join(request.meeting_url, request.room_id)
    message = "Processing join request..." if result["created"] else "Session already active"
    return {"message": message, **result}


@router.get("/{meeting_id:path}/transcript", response_model=TranscriptResponse, tags=["Meetings"])
async def get_transcript(meeting_id: str, bot=MeetingBotDep) -> Dict[str, Any]:
    """
    Get a session's transcript, active or archived.
    """
    try:
        return bot.get_transcript(meeting_id)
    except SessionNotFoundError as e:
        raise HTTPNotFound(e.message)


@router.post("/{meeting_id:path}/end", response_model=TranscriptResponse, tags=["Meetings"])
async def end_session(meeting_id: str, bot=MeetingBotDep) -> Dict[str, Any]:
    """
    End an active session and post its summary.
    """
    try:
        session = await bot.end_session(meeting_id)
    except SessionNotFoundError as e:
        raise HTTPNotFound(e.message)
    return session.transcript_dict()
