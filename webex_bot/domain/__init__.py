"""
Domain layer exports.
"""

from .models import (
    Message,
    BotIdentity,
    SessionState,
    TranscriptEntry,
    JoinResult,
    MeetingSession,
    BackoffState,
)

__all__ = [
    "Message",
    "BotIdentity",
    "SessionState",
    "TranscriptEntry",
    "JoinResult",
    "MeetingSession",
    "BackoffState",
]
