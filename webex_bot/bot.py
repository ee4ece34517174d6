"""
Webex Meeting Bot Orchestrator.
Coordinates message polling, invitation detection, meeting sessions and replies.
"""

import asyncio
import random
import time
from typing import Any, Dict, List, Optional, Set

from webex_bot.config import settings, Settings
from webex_bot.core.exceptions import (
    ConfigurationError,
    InitializationError,
    MessageSourceError,
    SessionNotFoundError,
)
from webex_bot.core.logging import get_logger, logger as root_logger, LogTailHandler
from webex_bot.dedup import DedupLedger
from webex_bot.detection import InvitationDetector, MeetingReference, normalize_meeting_url
from webex_bot.domain.models import BotIdentity, Message, MeetingSession
from webex_bot.notifier import Notifier
from webex_bot.providers import (
    JoinProvider,
    TranscriptionProvider,
    SimulatedJoinProvider,
    ScriptedTranscriptionProvider,
)
from webex_bot.responder import Responder, is_end_command, should_respond
from webex_bot.scheduler import PollScheduler
from webex_bot.sessions import SessionLifecycle, SessionRegistry
from webex_bot.utils import Clock, format_duration, now as default_now
from webex_bot.webex import MessageSourceBase, WebexClient

logger = get_logger("bot")


class WebexMeetingBot:
    """
    Main Webex Meeting Bot orchestrator.

    Owns every piece of per-process state (dedup ledger, session registry,
    log tail) so several independent bots can live side by side in tests.

    Coordinates:
    - Message polling and deduplication
    - Meeting invitation detection and session lifecycle
    - Keyword replies
    - Shutdown of sessions and transports
    """

    def __init__(
        self,
        source: Optional[MessageSourceBase] = None,
        join_provider: Optional[JoinProvider] = None,
        transcription_provider: Optional[TranscriptionProvider] = None,
        config: Optional[Settings] = None,
        clock: Clock = default_now,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the Webex Meeting Bot."""
        self._settings = config or settings
        self.clock = clock
        self.source = source or WebexClient(self._settings.webex)
        self.join_provider = join_provider or SimulatedJoinProvider()
        self.transcription_provider = transcription_provider or ScriptedTranscriptionProvider(clock=clock)

        self.identity: Optional[BotIdentity] = None
        self.is_running = False
        self.is_shut_down = False
        self.init_error: Optional[str] = None
        self._started_monotonic = time.monotonic()

        self.log_tail = LogTailHandler(capacity=self._settings.session.log_tail_size)
        root_logger.addHandler(self.log_tail)

        self.ledger = DedupLedger(
            ceiling=self._settings.polling.dedup_ceiling,
            floor=self._settings.polling.dedup_floor,
        )
        self.registry = SessionRegistry()
        self.notifier = Notifier(self.source)
        self.detector = InvitationDetector(self.source, self._settings.webex.domain_token)
        self.responder = Responder(rng)

        self.scheduler = PollScheduler(
            self.source,
            self.ledger,
            config=self._settings.polling,
            clock=clock,
        )
        self.lifecycle = SessionLifecycle(
            self.registry,
            self.notifier,
            self.join_provider,
            self.transcription_provider,
            config=self._settings.session,
            clock=clock,
            scheduler=self.scheduler.scheduler,
        )

        self._background_tasks: Set[asyncio.Task] = set()

        # Set up scheduler callbacks
        self.scheduler.set_callbacks(
            on_message=self.handle_message,
            on_heartbeat=self._heartbeat_line,
        )

    async def initialize(self) -> bool:
        """
        Fetch the bot's identity.

        Returns:
            True if initialization was successful.
        """
        logger.info("🚀 Starting Webex Meeting Bot...")
        try:
            self.identity = await self.source.get_current_identity()
        except (ConfigurationError, MessageSourceError) as e:
            self.init_error = str(e)
            self.is_running = False
            logger.error(f"❌ Failed to initialize: {e}")
            return False

        self.scheduler.set_bot_id(self.identity.id)
        self.init_error = None
        logger.info(f"✅ Bot initialized: {self.identity.display_name}")
        if self.identity.email:
            logger.info(f"📧 Bot Email: {self.identity.email}")
        return True

    async def start(self) -> None:
        """Start polling. Requires a successful initialize()."""
        if self.identity is None:
            raise InitializationError("Bot identity unknown, call initialize() first")
        if self.scheduler.is_running:
            return

        logger.info("💬 Starting chat monitoring...")
        self.scheduler.start()
        self.is_running = True

        # Initial poll
        await self.scheduler.trigger_immediate_poll()

    async def shutdown(self) -> List[MeetingSession]:
        """
        Shutdown the bot gracefully. Later calls do nothing.

        Returns:
            Sessions ended by the shutdown sweep.
        """
        if self.is_shut_down:
            return []
        self.is_shut_down = True

        logger.info("🛑 Stopping bot...")
        self.is_running = False
        self.scheduler.stop()
        await self.scheduler.wait_idle()

        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

        ended = await self.lifecycle.end_all(reason="shutdown")
        if ended:
            logger.info(f"Ended {len(ended)} session(s) on shutdown")

        for resource in (self.join_provider, self.transcription_provider, self.source):
            try:
                await resource.close()
            except Exception as e:
                logger.warning(f"Error releasing {type(resource).__name__}: {e}")

        logger.info("Bot shutdown complete")
        root_logger.removeHandler(self.log_tail)
        return ended

    async def handle_message(self, message: Message) -> None:
        """
        Route a new message.

        An end command in a room with active sessions ends them. Otherwise a
        meeting reference wins over keyword replies; replies are only
        considered when no meeting is mentioned.
        """
        logger.info(f"📨 Message from {message.person_email}: {message.text}")
        text = message.text

        if is_end_command(text) and self.registry.sessions_for_room(message.room_id):
            await self._end_room_sessions(message.room_id)
            return

        if self.detector.contains_meeting_reference(text):
            await self.handle_invitation(message)
            return

        if should_respond(text):
            await self.notifier.send(message.room_id, self.responder.generate(text))

    async def handle_invitation(self, message: Message) -> Optional[MeetingSession]:
        logger.info("📞 Meeting invitation detected!")
        reference = await self.detector.resolve_identifier(message.text, message.room_id)
        if reference is None:
            logger.info("🔗 URL not found, no session created")
            await self.notifier.unresolved_invitation(message.room_id)
            return None

        logger.info(f"🔗 URL: {reference.meeting_url or reference.meeting_id}")
        return await self._open_and_join(reference, message.room_id, message.person_email)

    async def _open_and_join(
        self,
        reference: MeetingReference,
        room_id: Optional[str],
        requester: Optional[str]
    ) -> MeetingSession:
        session, created = await self.lifecycle.open_session(reference, room_id, requester)
        if not created:
            return session

        await self.notifier.invitation_detected(session)
        return await self.lifecycle.join(session)

    async def _end_room_sessions(self, room_id: str) -> None:
        for session in self.registry.sessions_for_room(room_id):
            await self.lifecycle.end_session(session.meeting_id, reason="requested")

    async def manual_join(self, meeting: str, room_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Open a session from an API request.

        The session is created before returning; the join attempt runs in
        the background.

        Args:
            meeting: Meeting URL or identifier.
            room_id: Room to report to, if any.
        """
        meeting = meeting.strip()
        if not meeting:
            raise ValueError("Meeting URL required")

        logger.info(f"📞 Manual join request: {meeting}")
        reference = self.detector.extract_identifier(meeting)
        if reference is None:
            reference = MeetingReference(meeting_id=meeting)

        session, created = await self.lifecycle.open_session(reference, room_id, requester="api")
        if created:
            self._spawn(self._announce_and_join(session))

        return {
            "created": created,
            "meeting_id": session.meeting_id,
            "state": session.state.value,
        }

    async def _announce_and_join(self, session: MeetingSession) -> None:
        await self.notifier.invitation_detected(session)
        await self.lifecycle.join(session)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_task_done)
        return task

    def _background_task_done(self, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Background task failed: {task.exception()}")

    async def end_session(self, meeting_id: str) -> MeetingSession:
        """
        End an active session from an API request.

        Raises:
            SessionNotFoundError: if no session is active for the identifier.
        """
        session = await self.lifecycle.end_session(self._lookup_key(meeting_id), reason="manual")
        if session is None:
            raise SessionNotFoundError(f"No active session for {meeting_id}")
        return session

    def _lookup_key(self, meeting_id: str) -> str:
        if self.registry.get(meeting_id) is not None:
            return meeting_id
        if meeting_id.lower().startswith("https://"):
            return normalize_meeting_url(meeting_id)
        return meeting_id

    def list_sessions(self) -> List[dict]:
        return [session.to_dict() for session in self.registry.active_sessions()]

    def list_archived_sessions(self) -> List[dict]:
        return [session.to_dict() for session in self.registry.archived_sessions()]

    def get_transcript(self, meeting_id: str) -> dict:
        """
        Raises:
            SessionNotFoundError: if the identifier is unknown.
        """
        session = self.registry.get(self._lookup_key(meeting_id))
        if session is None:
            raise SessionNotFoundError(f"Unknown meeting {meeting_id}")
        return session.transcript_dict()

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started_monotonic

    @property
    def healthy(self) -> bool:
        return self.is_running and self.identity is not None

    def _heartbeat_line(self) -> str:
        return (
            f"running={self.is_running} processed={self.ledger.size()} "
            f"active={self.registry.active_count} archived={self.registry.archived_count} "
            f"uptime={format_duration(self.uptime_seconds)}"
        )

    def get_status(self) -> dict:
        """Get current status."""
        return {
            "running": self.is_running,
            "healthy": self.healthy,
            "bot": {
                "id": self.identity.id,
                "display_name": self.identity.display_name,
                "emails": self.identity.emails,
            } if self.identity else None,
            "init_error": self.init_error,
            "processed_messages": self.ledger.size(),
            "active_sessions": self.registry.active_count,
            "archived_sessions": self.registry.archived_count,
            "uptime_seconds": round(self.uptime_seconds, 1),
            "backoff": self.scheduler.backoff.to_dict(),
            "upcoming_jobs": self.scheduler.get_upcoming_jobs(),
            "logs": self.log_tail.tail(20),
        }
