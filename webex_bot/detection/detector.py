"""
Invitation detector.
Decides whether a chat message invites the bot to a meeting and resolves
the canonical meeting identifier.
"""

from dataclasses import dataclass
from typing import Optional

from webex_bot.core.exceptions import MessageSourceError
from webex_bot.core.logging import get_logger
from webex_bot.webex.base import MessageSourceBase
from .url_extractor import (
    contains_meeting_reference,
    extract_meeting_url,
    meeting_key,
    normalize_meeting_url,
)

logger = get_logger("detector")


@dataclass(frozen=True)
class MeetingReference:
    """A resolved meeting: canonical identifier plus the link to join."""
    meeting_id: str
    meeting_url: Optional[str] = None

    @property
    def key(self) -> Optional[str]:
        return meeting_key(self.meeting_url) if self.meeting_url else self.meeting_id


class InvitationDetector:
    """
    Recognises meeting invitations in message text.

    URL extraction is tried first; when a message only mentions a meeting
    in words, the room's own meeting metadata is used as a fallback.
    """

    def __init__(self, source: Optional[MessageSourceBase] = None, domain_token: str = "webex"):
        self.source = source
        self.domain_token = domain_token

    def contains_meeting_reference(self, text: Optional[str]) -> bool:
        return contains_meeting_reference(text)

    def extract_identifier(self, text: Optional[str]) -> Optional[MeetingReference]:
        """
        Resolve a meeting from the text alone.

        Returns:
            MeetingReference keyed by the normalized URL, or None.
        """
        url = extract_meeting_url(text, self.domain_token)
        if not url:
            return None
        return MeetingReference(meeting_id=normalize_meeting_url(url), meeting_url=url)

    async def resolve_identifier(
        self,
        text: Optional[str],
        room_id: Optional[str] = None
    ) -> Optional[MeetingReference]:
        """
        Resolve a meeting from the text, falling back to room metadata.

        Args:
            text: Message body.
            room_id: Room the message came from.

        Returns:
            MeetingReference, or None if no identifier could be found.
        """
        reference = self.extract_identifier(text)
        if reference is not None:
            return reference

        if not room_id or self.source is None:
            return None

        try:
            metadata = await self.source.get_conversation_metadata(room_id)
        except MessageSourceError as e:
            logger.warning(f"Room meeting lookup failed for {room_id}: {e}")
            return None

        link = metadata.get("meetingLink")
        if link:
            return MeetingReference(meeting_id=normalize_meeting_url(link), meeting_url=link)

        meeting_id = metadata.get("meetingId")
        if meeting_id:
            return MeetingReference(meeting_id=str(meeting_id))

        return None
