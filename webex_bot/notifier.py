"""
Notifier: sends bot messages back into Webex rooms.

Every send is fire-and-forget. Failures are logged and reported as False,
never raised to the caller.
"""

from typing import Optional

from webex_bot.core.exceptions import MessageSourceError
from webex_bot.core.logging import get_logger
from webex_bot.domain.models import JoinResult, MeetingSession, TranscriptEntry
from webex_bot.utils import format_local_time, truncate_text
from webex_bot.webex.base import MessageSourceBase

logger = get_logger("notifier")


class Notifier:
    """Formats and posts session notifications."""

    def __init__(self, source: MessageSourceBase):
        self.source = source
        self.sent_count = 0
        self.failed_count = 0

    async def send(self, room_id: Optional[str], text: str) -> bool:
        """
        Post a message to a room.

        Returns:
            True if the message was accepted, False if skipped or failed.
        """
        if not room_id:
            logger.debug("No room to notify, skipping message")
            return False

        try:
            await self.source.post_message(room_id, text)
        except MessageSourceError as e:
            self.failed_count += 1
            logger.error(f"Failed to send reply to {room_id}: {e}")
            return False

        self.sent_count += 1
        logger.info(f"Bot replied: {truncate_text(text)}")
        return True

    async def invitation_detected(self, session: MeetingSession) -> bool:
        text = (
            "🤖 **Meeting invitation detected!**\n\n"
            f"🔗 {session.meeting_url or session.meeting_id}\n"
            "🎤 I'll join, keep a transcript and post a summary when the meeting ends."
        )
        return await self.send(session.room_id, text)

    async def join_attempt(self, session: MeetingSession) -> bool:
        return await self.send(session.room_id, "🔄 Trying to join the meeting...")

    async def join_result(self, session: MeetingSession, result: JoinResult) -> bool:
        if result.is_unclear:
            text = "📱 Join attempt finished without confirmation, transcribing anyway."
            if result.detail:
                text += f"\n⚠️ {result.detail}"
        else:
            text = "✅ Joined the meeting. Transcription is running."
        return await self.send(session.room_id, text)

    async def join_failed(self, session: MeetingSession, error: str) -> bool:
        text = (
            "😔 Sorry, I couldn't join the meeting.\n"
            f"⚠️ {error}\n"
            "🔁 Send the link again and I'll retry."
        )
        return await self.send(session.room_id, text)

    async def important_entry(self, session: MeetingSession, entry: TranscriptEntry) -> bool:
        text = (
            f"📌 **Important** [{format_local_time(entry.timestamp)}] "
            f"{entry.speaker}: {entry.text}"
        )
        return await self.send(session.room_id, text)

    async def summary(self, session: MeetingSession) -> bool:
        if session.summary is None:
            return False
        return await self.send(session.room_id, session.summary)

    async def unresolved_invitation(self, room_id: Optional[str]) -> bool:
        text = (
            "🤔 That looks like a meeting invitation, but I couldn't find the link.\n"
            "💡 Paste the full Webex meeting URL and I'll join."
        )
        return await self.send(room_id, text)
