"""
API request/response schemas for meeting operations.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ManualJoinRequest(BaseModel):
    """Request to manually join a meeting."""
    meeting_url: Optional[str] = Field(default=None, description="Meeting URL or identifier to join")
    room_id: Optional[str] = Field(default=None, description="Room to report to")


class ManualJoinResponse(BaseModel):
    """Response for manual join request."""
    message: str
    created: bool
    meeting_id: str
    state: str


class SessionResponse(BaseModel):
    """A meeting session without its transcript."""
    meeting_id: str
    meeting_url: Optional[str] = None
    room_id: Optional[str] = None
    requester: Optional[str] = None
    state: str
    created_at: str
    ended_at: Optional[str] = None
    end_reason: Optional[str] = None
    entry_count: int
    important_count: int
    has_summary: bool
    error: Optional[str] = None


class TranscriptEntryResponse(BaseModel):
    timestamp: str
    speaker: str
    text: str
    confidence: float
    important: bool


class TranscriptResponse(SessionResponse):
    """A meeting session with its transcript and summary."""
    entries: List[TranscriptEntryResponse]
    summary: Optional[str] = None


class StatusResponse(BaseModel):
    """Bot status snapshot."""
    running: bool
    healthy: bool
    bot: Optional[Dict[str, Any]] = None
    init_error: Optional[str] = None
    processed_messages: int
    active_sessions: int
    archived_sessions: int
    uptime_seconds: float
    backoff: Dict[str, Any]
    upcoming_jobs: List[dict]
    logs: List[Dict[str, str]]


class HealthCheckResponse(BaseModel):
    """Health check response."""
    healthy: bool
    uptime: float
    messages_processed: int
