"""
Session lifecycle engine.
Drives sessions through PENDING -> JOINING -> ACTIVE -> ENDED.
"""

import asyncio
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.jobstores.base import JobLookupError

from webex_bot.config import settings, SessionSettings
from webex_bot.core.logging import get_logger
from webex_bot.detection import MeetingReference
from webex_bot.domain.models import MeetingSession, SessionState
from webex_bot.notifier import Notifier
from webex_bot.providers import JoinProvider, TranscriptionProvider
from webex_bot.utils import Clock, now as default_now
from .registry import SessionRegistry
from .summary import build_summary
from .transcript import TranscriptAccumulator

logger = get_logger("lifecycle")


ALLOWED_TRANSITIONS = {
    SessionState.PENDING: {SessionState.JOINING},
    SessionState.JOINING: {SessionState.ACTIVE, SessionState.ENDED},
    SessionState.ACTIVE: {SessionState.ENDED},
    SessionState.ENDED: set(),
}


class IllegalTransitionError(ValueError):
    pass


def transition(session: MeetingSession, new_state: SessionState) -> None:
    if new_state not in ALLOWED_TRANSITIONS[session.state]:
        raise IllegalTransitionError(
            f"{session.meeting_id}: {session.state.value} -> {new_state.value} is not allowed"
        )
    logger.debug(f"{session.meeting_id}: {session.state.value} -> {new_state.value}")
    session.state = new_state


class SessionLifecycle:
    """
    Opens, joins, captures and ends meeting sessions.

    State changes and the auto-end job bookkeeping happen under the
    registry lock so a manual end request cannot race an in-flight join
    or transcript append. Network calls (join, notify) are made outside
    the lock.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        notifier: Notifier,
        join_provider: JoinProvider,
        transcription_provider: TranscriptionProvider,
        config: Optional[SessionSettings] = None,
        clock: Clock = default_now,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.registry = registry
        self.notifier = notifier
        self.join_provider = join_provider
        self.transcription_provider = transcription_provider
        self.accumulator = TranscriptAccumulator(registry, notifier)
        self._settings = config or settings.session
        self.clock = clock
        self.scheduler = scheduler

        self._capture_tasks: Dict[str, asyncio.Task] = {}
        self._stop_events: Dict[str, asyncio.Event] = {}

    async def open_session(
        self,
        reference: MeetingReference,
        room_id: Optional[str] = None,
        requester: Optional[str] = None
    ) -> Tuple[MeetingSession, bool]:
        """
        Create the session for a meeting unless one is already active.
        A new session moves straight to JOINING.

        Returns:
            (session, created)
        """
        def factory() -> MeetingSession:
            return MeetingSession(
                meeting_id=reference.meeting_id,
                meeting_url=reference.meeting_url,
                created_at=self.clock(),
                room_id=room_id,
                requester=requester,
            )

        async with self.registry.lock:
            session, created = self.registry.get_or_create(reference.meeting_id, factory)
            if created:
                transition(session, SessionState.JOINING)

        if not created:
            logger.info(f"Session already active for {reference.meeting_id} ({session.state.value})")
        return session, created

    async def join(self, session: MeetingSession) -> MeetingSession:
        """
        Run the join attempt for a JOINING session.

        Any returned result, confirmed or not, activates the session. A
        raised error or a timeout ends it with an apology.
        """
        await self.notifier.join_attempt(session)

        try:
            result = await asyncio.wait_for(
                self.join_provider.join(session),
                timeout=self._settings.join_timeout_seconds,
            )
        except asyncio.TimeoutError:
            await self._fail_join(session, f"join timed out after {self._settings.join_timeout_seconds:g}s")
            return session
        except Exception as e:
            await self._fail_join(session, str(e) or type(e).__name__)
            return session

        async with self.registry.lock:
            if session.state is not SessionState.JOINING:
                logger.info(f"Session {session.meeting_id} ended while joining")
                return session
            transition(session, SessionState.ACTIVE)
            self._start_capture(session)
            self._schedule_auto_end(session)

        logger.info(
            f"Session active: {session.meeting_id} "
            f"({'unclear join' if result.is_unclear else 'joined'})"
        )
        await self.notifier.join_result(session, result)
        return session

    async def _fail_join(self, session: MeetingSession, error: str) -> None:
        logger.error(f"Meeting join failed for {session.meeting_id}: {error}")

        async with self.registry.lock:
            if session.state is not SessionState.JOINING:
                return
            session.error = error
            self._finish(session, reason="join_failed")

        await self.notifier.join_failed(session, error)

    def _finish(self, session: MeetingSession, reason: str) -> MeetingSession:
        """
        Move a session to ENDED, summarise and archive it.
        Caller must hold the registry lock.
        """
        session.ended_at = self.clock()
        session.end_reason = reason
        transition(session, SessionState.ENDED)
        session.set_summary(build_summary(session, self._settings.summary_max_entries))
        return self.registry.archive(session)

    def _start_capture(self, session: MeetingSession) -> None:
        stop_event = asyncio.Event()
        self._stop_events[session.meeting_id] = stop_event
        self._capture_tasks[session.meeting_id] = asyncio.create_task(
            self._capture_loop(session, stop_event),
            name=f"capture:{session.meeting_id}",
        )

    async def _capture_loop(self, session: MeetingSession, stop_event: asyncio.Event) -> None:
        interval = self._settings.transcript_interval_seconds
        logger.info(f"Transcript capture started for {session.meeting_id} (every {interval:g}s)")

        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
                break
            except asyncio.TimeoutError:
                pass

            if session.state is not SessionState.ACTIVE:
                break

            try:
                entry = await self.transcription_provider.next_entry(session)
            except Exception as e:
                logger.warning(f"Transcription error in {session.meeting_id}: {e}")
                continue

            if entry is None or stop_event.is_set():
                continue

            try:
                await self.accumulator.append_to(session, entry)
            except Exception as e:
                logger.error(f"Failed to append transcript entry for {session.meeting_id}: {e}")

        logger.info(f"Transcript capture stopped for {session.meeting_id}")

    async def end_session(self, meeting_id: str, reason: str = "manual") -> Optional[MeetingSession]:
        """
        End the active session for a meeting.

        Returns:
            The archived session, or None if nothing was active.
        """
        async with self.registry.lock:
            session = self.registry.get_active(meeting_id)
            if session is None or session.state is SessionState.ENDED:
                logger.debug(f"End request for {meeting_id} ignored: no active session")
                return None

            stop_event = self._stop_events.pop(meeting_id, None)
            if stop_event is not None:
                stop_event.set()
            task = self._capture_tasks.pop(meeting_id, None)
            self._cancel_auto_end(meeting_id)

            archived = self._finish(session, reason=reason)

        if task is not None:
            await task

        try:
            await self.join_provider.leave(session)
        except Exception as e:
            logger.warning(f"Leaving {meeting_id} failed: {e}")

        logger.info(
            f"Session ended: {meeting_id} ({reason}, {archived.entry_count} entries)"
        )
        await self.notifier.summary(archived)
        return archived

    async def end_all(self, reason: str = "shutdown") -> List[MeetingSession]:
        """End every session that is still JOINING or ACTIVE."""
        ended = []
        for session in self.registry.active_sessions():
            try:
                archived = await self.end_session(session.meeting_id, reason=reason)
            except Exception as e:
                logger.error(f"Failed to end session {session.meeting_id}: {e}")
                continue
            if archived is not None:
                ended.append(archived)
        return ended

    def _schedule_auto_end(self, session: MeetingSession) -> None:
        minutes = self._settings.max_session_minutes
        if self.scheduler is None or minutes <= 0:
            return

        end_time = session.created_at + timedelta(minutes=minutes)
        self.scheduler.add_job(
            self._auto_end_job,
            trigger=DateTrigger(run_date=end_time),
            args=[session.meeting_id],
            id=f"end_{session.meeting_id}",
            name=f"End: {session.meeting_id}",
            replace_existing=True,
            misfire_grace_time=60
        )
        logger.debug(f"Auto-end for {session.meeting_id} scheduled at {end_time.strftime('%H:%M')}")

    def _cancel_auto_end(self, meeting_id: str) -> None:
        if self.scheduler is None:
            return
        try:
            self.scheduler.remove_job(f"end_{meeting_id}")
        except JobLookupError:
            pass

    async def _auto_end_job(self, meeting_id: str) -> None:
        logger.info(f"Maximum session length reached: {meeting_id}")
        await self.end_session(meeting_id, reason="timeout")

    @property
    def capturing_count(self) -> int:
        return len(self._capture_tasks)
