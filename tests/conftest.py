"""Pytest configuration and fixtures."""

import asyncio
import os
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

# Set test environment variables
os.environ.setdefault("WEBEX_ACCESS_TOKEN", "test_token")
os.environ.setdefault("TIMEZONE", "UTC")

from webex_bot.config import Settings, PollingSettings, SessionSettings, WebexSettings  # noqa: E402
from webex_bot.core.logging import setup_logging  # noqa: E402
from webex_bot.domain.models import BotIdentity, JoinResult, Message, MeetingSession  # noqa: E402
from webex_bot.providers import JoinProvider, ScriptedTranscriptionProvider  # noqa: E402
from webex_bot.webex.base import MessageSourceBase  # noqa: E402

BOT_ID = "bot-person-id"

setup_logging(log_level="INFO", enable_file_logging=False)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2024, 5, 1, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float = 0, minutes: float = 0) -> datetime:
        self.current += timedelta(seconds=seconds, minutes=minutes)
        return self.current


class FakeMessageSource(MessageSourceBase):
    """In-memory conversation service."""

    def __init__(self, identity: Optional[BotIdentity] = None):
        self.identity = identity or BotIdentity(id=BOT_ID, display_name="Meeting Bot", emails=["bot@webex.bot"])
        self.pages: List[List[Message]] = []
        self.default_page: List[Message] = []
        self.fetch_errors: List[Exception] = []
        self.identity_error: Optional[Exception] = None
        self.post_error: Optional[Exception] = None
        self.metadata: Dict[str, Dict[str, Any]] = {}
        self.posted: List[tuple] = []
        self.fetch_calls = 0
        self.close_calls = 0
        self.closed = False

    async def get_current_identity(self) -> BotIdentity:
        if self.identity_error is not None:
            raise self.identity_error
        return self.identity

    async def fetch_recent_messages(self, max_messages: int = 20, room_id: Optional[str] = None) -> List[Message]:
        self.fetch_calls += 1
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        page = self.pages.pop(0) if self.pages else self.default_page
        return list(page)[:max_messages]

    async def post_message(self, room_id: str, text: str) -> None:
        if self.post_error is not None:
            raise self.post_error
        self.posted.append((room_id, text))

    async def get_conversation_metadata(self, room_id: str) -> Dict[str, Any]:
        return self.metadata.get(room_id, {})

    async def close(self) -> None:
        self.close_calls += 1
        self.closed = True

    def texts_for(self, room_id: str) -> List[str]:
        return [text for room, text in self.posted if room == room_id]


class StubJoinProvider(JoinProvider):
    """Join provider with a scripted outcome."""

    def __init__(self, result: Optional[JoinResult] = None, error: Optional[Exception] = None, delay: float = 0):
        self.result = result or JoinResult(joined=True)
        self.error = error
        self.delay = delay
        self.calls: List[str] = []
        self.left: List[str] = []
        self.closed = False

    async def join(self, session: MeetingSession) -> JoinResult:
        self.calls.append(session.meeting_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result

    async def leave(self, session: MeetingSession) -> None:
        self.left.append(session.meeting_id)

    async def close(self) -> None:
        self.closed = True


def make_message(
    message_id: str,
    text: Optional[str],
    room_id: str = "C1",
    person_id: str = "user-1",
    person_email: str = "user@example.com",
) -> Message:
    return Message(
        id=message_id,
        person_id=person_id,
        room_id=room_id,
        person_email=person_email,
        text=text,
    )


async def wait_until(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` until it is true or the timeout expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()


@pytest.fixture
def clock():
    """Provide a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def source():
    """Provide an in-memory message source."""
    return FakeMessageSource()


@pytest.fixture
def join_provider():
    """Provide a join provider that always succeeds."""
    return StubJoinProvider()


@pytest.fixture
def test_settings():
    """Settings with fast cadences and no automatic session end."""
    return Settings(
        webex=WebexSettings(access_token="test_token"),
        polling=PollingSettings(
            interval_seconds=5,
            page_size=20,
            rate_limit_penalty_seconds=60,
            dedup_ceiling=200,
            dedup_floor=100,
            heartbeat_interval_seconds=0,
        ),
        session=SessionSettings(
            transcript_interval_seconds=3600,
            join_timeout_seconds=1,
            summary_max_entries=5,
            max_session_minutes=0,
        ),
        timezone="UTC",
    )


@pytest.fixture
def bot(source, join_provider, test_settings, clock):
    """Provide a bot wired to fakes; nothing is started."""
    from webex_bot.bot import WebexMeetingBot

    instance = WebexMeetingBot(
        source=source,
        join_provider=join_provider,
        transcription_provider=ScriptedTranscriptionProvider(clock=clock),
        config=test_settings,
        clock=clock,
        rng=random.Random(7),
    )
    yield instance
    from webex_bot.core.logging import logger as root_logger
    root_logger.removeHandler(instance.log_tail)
