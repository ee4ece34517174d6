"""
Capability interfaces for joining meetings and transcribing them.
"""

from abc import ABC, abstractmethod
from typing import Optional

from webex_bot.domain.models import JoinResult, MeetingSession, TranscriptEntry


class JoinProvider(ABC):
    """
    Joins the bot to a meeting on the video platform.
    """

    @abstractmethod
    async def join(self, session: MeetingSession) -> JoinResult:
        """
        Attempt to join the session's meeting.

        Returns:
            JoinResult; ``joined=None`` when the outcome is unclear.

        Raises:
            MeetingJoinError: on a hard failure (navigation, transport).
        """
        pass

    async def leave(self, session: MeetingSession) -> None:
        """Leave the meeting. Default: nothing to do."""
        return None

    async def close(self) -> None:
        """Release shared resources such as a browser handle."""
        return None


class TranscriptionProvider(ABC):
    """
    Produces transcript entries for an active session.
    """

    @abstractmethod
    async def next_entry(self, session: MeetingSession) -> Optional[TranscriptEntry]:
        """
        Return the next utterance, or None if nothing was said.

        Raises:
            TranscriptionError: when the capture backend fails.
        """
        pass

    async def close(self) -> None:
        return None
