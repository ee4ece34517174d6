"""
Core module exports.
"""

from .logging import logger, get_logger, setup_logging, LogTailHandler
from .exceptions import (
    MeetingBotException,
    ConfigurationError,
    InitializationError,
    MessageSourceError,
    TransientSourceError,
    RateLimitedError,
    PermissionDeniedError,
    MeetingJoinError,
    TranscriptionError,
    SessionNotFoundError,
    ErrorThrottle,
)

__all__ = [
    "logger",
    "get_logger",
    "setup_logging",
    "LogTailHandler",
    "MeetingBotException",
    "ConfigurationError",
    "InitializationError",
    "MessageSourceError",
    "TransientSourceError",
    "RateLimitedError",
    "PermissionDeniedError",
    "MeetingJoinError",
    "TranscriptionError",
    "SessionNotFoundError",
    "ErrorThrottle",
]
