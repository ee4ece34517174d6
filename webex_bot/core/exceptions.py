"""
Custom exceptions for the Webex Meeting Bot.
"""

import time
from typing import Any, Callable, Dict, Optional
from fastapi import HTTPException, status


class MeetingBotException(Exception):
    """Base exception for Meeting Bot errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(MeetingBotException):
    """Raised when configuration is invalid."""
    pass


class InitializationError(MeetingBotException):
    """Raised when the bot cannot establish its identity at startup."""
    pass


class MessageSourceError(MeetingBotException):
    """Base class for failures talking to the messaging service."""
    pass


class TransientSourceError(MessageSourceError):
    """Timeouts, network errors and 5xx responses."""
    pass


class RateLimitedError(MessageSourceError):
    """Raised on a 429 response."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.retry_after = retry_after


class PermissionDeniedError(MessageSourceError):
    """Raised on 400/401/403 responses, e.g. missing scopes."""
    pass


class MeetingJoinError(MeetingBotException):
    """Raised when joining a meeting fails."""
    pass


class TranscriptionError(MeetingBotException):
    """Raised when transcription operations fail."""
    pass


class SessionNotFoundError(MeetingBotException):
    """Raised when a meeting identifier has no session."""
    pass


class ErrorThrottle:
    """
    Decides whether an error should be logged.

    An error class that was already reported within ``window_seconds`` is
    suppressed so a persistent permission problem does not flood the log.
    """

    def __init__(self, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_reported: Dict[str, float] = {}
        self.suppressed = 0

    def should_report(self, error: BaseException) -> bool:
        key = type(error).__name__
        now = self._clock()
        last = self._last_reported.get(key)
        if last is not None and now - last < self.window_seconds:
            self.suppressed += 1
            return False
        self._last_reported[key] = now
        return True


# HTTP Exceptions for API responses
class HTTPBadRequest(HTTPException):
    """400 Bad Request"""
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class HTTPNotFound(HTTPException):
    """404 Not Found"""
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class HTTPServiceUnavailable(HTTPException):
    """503 Service Unavailable"""
    def __init__(self, detail: str = "Service unavailable"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
