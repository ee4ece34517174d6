"""
API v1 schemas module.
"""

from .meeting import (
    ManualJoinRequest,
    ManualJoinResponse,
    SessionResponse,
    TranscriptEntryResponse,
    TranscriptResponse,
    StatusResponse,
    HealthCheckResponse,
)

__all__ = [
    "ManualJoinRequest",
    "ManualJoinResponse",
    "SessionResponse",
    "TranscriptEntryResponse",
    "TranscriptResponse",
    "StatusResponse",
    "HealthCheckResponse",
]
