"""
Transcript accumulator.
Appends entries to active sessions and forwards important ones right away.
"""

from dataclasses import replace
from typing import Iterable, Optional

from webex_bot.core.logging import get_logger
from webex_bot.domain.models import MeetingSession, SessionState, TranscriptEntry
from webex_bot.notifier import Notifier
from .registry import SessionRegistry

logger = get_logger("transcript")


IMPORTANT_KEYWORDS = (
    # English
    "decision", "decide", "summary", "action", "deadline", "budget",
    # Hebrew
    "החלטה", "החלטנו", "סיכום", "פעולה", "משימה", "דדליין", "מועד", "תקציב",
)


def is_important(text: str, keywords: Iterable[str] = IMPORTANT_KEYWORDS) -> bool:
    """Keyword membership test, case-insensitive."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


class TranscriptAccumulator:
    """
    Appends transcript entries in arrival order.

    Entries are only accepted while their session is ACTIVE. Important
    entries are sent to the session's room immediately, one message each.
    """

    def __init__(self, registry: SessionRegistry, notifier: Notifier):
        self.registry = registry
        self.notifier = notifier

    async def append(self, session_id: str, entry: TranscriptEntry) -> Optional[TranscriptEntry]:
        """
        Append to the active session with this identifier.

        Returns:
            The stored entry (with its importance flag), or None if the
            session is not capturing.
        """
        return await self._append(session_id, entry, expected=None)

    async def append_to(self, session: MeetingSession, entry: TranscriptEntry) -> Optional[TranscriptEntry]:
        """Append only if ``session`` is still the active one for its identifier."""
        return await self._append(session.meeting_id, entry, expected=session)

    async def _append(
        self,
        session_id: str,
        entry: TranscriptEntry,
        expected: Optional[MeetingSession]
    ) -> Optional[TranscriptEntry]:
        important = is_important(entry.text)
        if important != entry.important:
            entry = replace(entry, important=important)

        async with self.registry.lock:
            session = self.registry.get_active(session_id)
            if session is None or (expected is not None and session is not expected):
                logger.debug(f"Dropping transcript entry for inactive session {session_id}")
                return None
            if session.state is not SessionState.ACTIVE:
                logger.debug(f"Dropping transcript entry, {session_id} is {session.state.value}")
                return None
            session.add_entry(entry)

        logger.debug(f"[{session_id}] {entry.speaker}: {entry.text}")

        if important:
            logger.info(f"Important transcript entry in {session_id}: {entry.text}")
            await self.notifier.important_entry(session, entry)

        return entry
