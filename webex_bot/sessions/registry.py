"""
Session registry.
Owns the active meeting sessions and the archive of ended ones.
"""

import asyncio
from typing import Callable, Dict, List, Optional, Tuple

from webex_bot.core.logging import get_logger
from webex_bot.domain.models import MeetingSession, SessionState

logger = get_logger("registry")


class SessionRegistry:
    """
    Maps meeting identifiers to sessions.

    At most one active session exists per identifier. Ended sessions move
    to the archive, which keeps every past session for an identifier, so a
    meeting can be joined again after an earlier session ended.

    All mutations go through ``lock``. Methods that do not take the lock
    themselves expect the caller to hold it.
    """

    def __init__(self):
        self.lock = asyncio.Lock()
        self._active: Dict[str, MeetingSession] = {}
        self._archive: Dict[str, List[MeetingSession]] = {}

    def get_or_create(
        self,
        meeting_id: str,
        factory: Callable[[], MeetingSession]
    ) -> Tuple[MeetingSession, bool]:
        """
        Return the active session for ``meeting_id``, creating it if absent.
        Caller must hold ``lock``.

        Returns:
            (session, created)
        """
        existing = self._active.get(meeting_id)
        if existing is not None:
            return existing, False

        session = factory()
        if session.meeting_id != meeting_id:
            raise ValueError(f"Factory built session {session.meeting_id} for {meeting_id}")
        self._active[meeting_id] = session
        logger.info(f"Session created: {meeting_id}")
        return session, True

    async def create_if_absent(
        self,
        meeting_id: str,
        factory: Callable[[], MeetingSession]
    ) -> Tuple[MeetingSession, bool]:
        async with self.lock:
            return self.get_or_create(meeting_id, factory)

    def archive(self, session: MeetingSession) -> MeetingSession:
        """
        Move an ended session into the archive. Caller must hold ``lock``.

        Returns:
            The archived snapshot.
        """
        if session.state is not SessionState.ENDED:
            raise ValueError(f"Only ended sessions can be archived, {session.meeting_id} is {session.state.value}")

        if self._active.get(session.meeting_id) is session:
            del self._active[session.meeting_id]

        snapshot = session.frozen_copy()
        self._archive.setdefault(session.meeting_id, []).append(snapshot)
        logger.info(f"Session archived: {session.meeting_id} ({snapshot.entry_count} entries)")
        return snapshot

    def get_active(self, meeting_id: str) -> Optional[MeetingSession]:
        return self._active.get(meeting_id)

    def get_archived(self, meeting_id: str) -> Optional[MeetingSession]:
        """Most recent archived session for the identifier."""
        history = self._archive.get(meeting_id)
        return history[-1] if history else None

    def archived_history(self, meeting_id: str) -> List[MeetingSession]:
        return list(self._archive.get(meeting_id, []))

    def get(self, meeting_id: str) -> Optional[MeetingSession]:
        """Active session if any, otherwise the latest archived one."""
        return self.get_active(meeting_id) or self.get_archived(meeting_id)

    def active_sessions(self) -> List[MeetingSession]:
        return list(self._active.values())

    def archived_sessions(self) -> List[MeetingSession]:
        return [session for history in self._archive.values() for session in history]

    def sessions_for_room(self, room_id: str) -> List[MeetingSession]:
        return [session for session in self._active.values() if session.room_id == room_id]

    @property
    def active_count(self) -> int:
        return len(self._active)

    @property
    def archived_count(self) -> int:
        return sum(len(history) for history in self._archive.values())
