"""
Message poll scheduler using APScheduler.
Runs the fetch -> dedup -> dispatch cycle and backs off on rate limits.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.jobstores.base import JobLookupError
from apscheduler.events import (
    EVENT_JOB_EXECUTED,
    EVENT_JOB_ERROR,
    EVENT_JOB_MISSED,
    JobExecutionEvent,
)

from webex_bot.config import settings, PollingSettings
from webex_bot.core.exceptions import (
    ErrorThrottle,
    MessageSourceError,
    PermissionDeniedError,
    RateLimitedError,
    TransientSourceError,
)
from webex_bot.core.logging import get_logger
from webex_bot.dedup import DedupLedger
from webex_bot.domain.models import BackoffState, Message
from webex_bot.utils import Clock, now as default_now
from webex_bot.webex.base import MessageSourceBase

logger = get_logger("scheduler")

POLL_JOB_ID = "message_polling"
RESUME_JOB_ID = "resume_polling"
HEARTBEAT_JOB_ID = "heartbeat"

MessageHandler = Callable[[Message], Awaitable[None]]


class PollScheduler:
    """
    Scheduler for message polling.

    One tick fetches a page of recent messages, walks it oldest first,
    skips anything already seen or sent by the bot, and hands the rest to
    the message handler one at a time. Ticks never overlap: the job runs
    with ``max_instances=1`` and ``tick`` itself refuses to re-enter.
    """

    def __init__(
        self,
        source: MessageSourceBase,
        ledger: DedupLedger,
        config: Optional[PollingSettings] = None,
        clock: Clock = default_now,
    ):
        self.source = source
        self.ledger = ledger
        self._settings = config or settings.polling
        self.clock = clock
        self._is_running: bool = False
        self._stopping: bool = False

        # Configure job stores
        jobstores = {
            'default': MemoryJobStore()
        }

        # Create scheduler
        self._scheduler = AsyncIOScheduler(
            jobstores=jobstores,
            timezone=timezone.utc
        )

        self.backoff = BackoffState(base_interval_seconds=self._settings.interval_seconds)
        self.error_throttle = ErrorThrottle(self._settings.error_suppression_seconds)
        self._tick_lock = asyncio.Lock()

        self.bot_id: Optional[str] = None
        self.fetch_attempts = 0
        self.ticks_skipped = 0
        self.last_error: Optional[str] = None

        # Callbacks
        self._on_message: Optional[MessageHandler] = None
        self._on_heartbeat: Optional[Callable[[], str]] = None

        # Add event listeners
        self._scheduler.add_listener(
            self._on_job_event,
            EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MISSED
        )

    def set_callbacks(
        self,
        on_message: Optional[MessageHandler] = None,
        on_heartbeat: Optional[Callable[[], str]] = None
    ) -> None:
        """
        Set callback functions for scheduler events.

        Args:
            on_message: Called for every new message not sent by the bot.
            on_heartbeat: Returns the status line logged by the heartbeat job.
        """
        self._on_message = on_message
        self._on_heartbeat = on_heartbeat

    def set_bot_id(self, bot_id: str) -> None:
        """Messages authored by this person ID are never dispatched."""
        self.bot_id = bot_id

    @property
    def scheduler(self) -> AsyncIOScheduler:
        return self._scheduler

    def start(self) -> None:
        """Start the scheduler."""
        self._stopping = False
        if not self._is_running:
            self._scheduler.start()
            self._is_running = True
            logger.info("Poll scheduler started")
            self._schedule_polling()
            self._schedule_heartbeat()

    def stop(self) -> None:
        """Stop the scheduler. A tick already running is not interrupted."""
        self._stopping = True
        if not self._is_running:
            return

        try:
            # Avoid calling into a closed event loop (e.g. during test teardown)
            loop = getattr(self._scheduler, "_eventloop", None)
            if self._scheduler.running and not (loop and loop.is_closed()):
                self._scheduler.shutdown(wait=False)
            logger.info("Poll scheduler stopped")
        finally:
            self._is_running = False

    async def wait_idle(self) -> None:
        """Wait for an in-flight tick to finish."""
        async with self._tick_lock:
            pass

    def _schedule_polling(self) -> None:
        """Schedule periodic message polling job."""
        self._scheduler.add_job(
            self._poll_job,
            trigger=IntervalTrigger(
                seconds=self._settings.interval_seconds,
                timezone=timezone.utc
            ),
            id=POLL_JOB_ID,
            name="Message Polling",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        logger.info(f"Message polling scheduled every {self._settings.interval_seconds:g} seconds")

    def _schedule_heartbeat(self) -> None:
        if self._settings.heartbeat_interval_seconds <= 0:
            return
        self._scheduler.add_job(
            self._heartbeat_job,
            trigger=IntervalTrigger(
                seconds=self._settings.heartbeat_interval_seconds,
                timezone=timezone.utc
            ),
            id=HEARTBEAT_JOB_ID,
            name="Heartbeat",
            replace_existing=True,
            max_instances=1
        )

    async def _poll_job(self) -> None:
        """Polling job that runs periodically."""
        logger.debug("Running message poll job...")
        await self.tick()

    async def _heartbeat_job(self) -> None:
        if self._on_heartbeat:
            logger.info(f"💓 {self._on_heartbeat()}")

    async def tick(self) -> int:
        """
        Run one fetch-and-dispatch cycle.

        Returns:
            Number of messages dispatched.
        """
        if self._stopping:
            return 0
        if self._tick_lock.locked():
            self.ticks_skipped += 1
            logger.debug("Previous poll still running, skipping tick")
            return 0

        async with self._tick_lock:
            if self.backoff.in_penalty(self.clock()):
                self.ticks_skipped += 1
                logger.debug(f"Rate-limit penalty active until {self.backoff.penalty_until}, skipping tick")
                return 0

            self.fetch_attempts += 1
            try:
                messages = await self.source.fetch_recent_messages(
                    self._settings.page_size,
                    room_id=self._settings.room_id
                )
            except RateLimitedError as e:
                self._enter_penalty(e)
                return 0
            except TransientSourceError as e:
                self.last_error = str(e)
                if "timeout" in e.message:
                    logger.debug(f"Message fetch timed out: {e}")
                else:
                    logger.warning(f"⚠️ Error checking messages: {e}")
                return 0
            except PermissionDeniedError as e:
                self.last_error = str(e)
                if self.error_throttle.should_report(e):
                    logger.error(f"❌ Not allowed to read messages: {e}")
                return 0
            except MessageSourceError as e:
                self.last_error = str(e)
                logger.warning(f"⚠️ Error checking messages: {e}")
                return 0

            if self._stopping:
                logger.debug("Poller stopping, dropping fetched page")
                return 0

            dispatched = await self._dispatch(messages)

            evicted = self.ledger.compact_if_needed()
            if evicted:
                logger.debug(f"Dedup ledger compacted, {evicted} identifiers evicted")

            self.backoff.record_success(self.clock())
            self.last_error = None
            return dispatched

    async def _dispatch(self, messages) -> int:
        dispatched = 0
        # The API returns newest first
        for message in reversed(messages):
            if self._stopping:
                break
            if self.ledger.seen(message.id):
                continue
            if self.bot_id is not None and message.person_id == self.bot_id:
                continue

            self.ledger.mark_seen(message.id)
            dispatched += 1

            if self._on_message is None:
                continue
            try:
                await self._on_message(message)
            except Exception as e:
                logger.error(f"❌ Error handling message {message.id}: {e}")
        return dispatched

    def _enter_penalty(self, error: RateLimitedError) -> None:
        """
        Stop polling for a full penalty window after a rate-limit response.
        """
        window = max(self._settings.rate_limit_penalty_seconds, error.retry_after or 0)
        until = self.backoff.penalize(self.clock(), window)
        self.last_error = str(error)
        logger.warning(f"⏳ Rate limited, pausing polling for {window:g}s (until {until.strftime('%H:%M:%S')})")

        if not self._is_running:
            return

        try:
            self._scheduler.pause_job(POLL_JOB_ID)
        except JobLookupError:
            pass

        self._scheduler.add_job(
            self._resume_polling,
            trigger=DateTrigger(
                run_date=datetime.now(timezone.utc) + timedelta(seconds=window),
                timezone=timezone.utc
            ),
            id=RESUME_JOB_ID,
            name="Resume Polling",
            replace_existing=True,
            misfire_grace_time=None
        )

    async def _resume_polling(self) -> None:
        """Leave the penalty regime and resume the normal polling interval."""
        self.backoff.restore()
        try:
            self._scheduler.resume_job(POLL_JOB_ID)
        except JobLookupError:
            self._schedule_polling()
        logger.info(f"▶️ Polling resumed every {self.backoff.interval_seconds:g} seconds")

    async def trigger_immediate_poll(self) -> int:
        """
        Trigger an immediate poll (useful for initial startup).
        """
        return await self.tick()

    def _on_job_event(self, event: JobExecutionEvent) -> None:
        """
        Handle scheduler job events.

        Args:
            event: Job execution event.
        """
        if event.exception:
            logger.error(f"Job {event.job_id} failed: {event.exception}")
        elif getattr(event, 'scheduled_run_time', None):
            delay = (datetime.now(timezone.utc) - event.scheduled_run_time).total_seconds()
            if delay > 60:
                logger.warning(f"Job {event.job_id} was delayed by {delay:.0f} seconds")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._is_running

    def get_upcoming_jobs(self) -> list:
        """
        Get information about upcoming scheduled jobs.
        """
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": next_run.isoformat() if next_run else None,
                "trigger": str(job.trigger)
            })
        return jobs
