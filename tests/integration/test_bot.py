"""End-to-end tests for the bot with an in-memory message source."""

import asyncio

import pytest

from tests.conftest import BOT_ID, make_message, wait_until
from webex_bot.config import WebexSettings
from webex_bot.core.exceptions import (
    InitializationError,
    PermissionDeniedError,
    SessionNotFoundError,
)
from webex_bot.domain.models import SessionState, TranscriptEntry
from webex_bot.webex import WebexClient

URL = "https://company.webex.com/meet/abc123"


class TestInvitationFlow:
    """Test meeting invitations arriving through polling."""

    @pytest.mark.asyncio
    async def test_link_opens_active_session(self, bot, source):
        await bot.initialize()
        source.default_page = [make_message("m1", f"Join us: {URL}")]

        await bot.scheduler.tick()

        sessions = bot.registry.active_sessions()
        assert len(sessions) == 1
        session = sessions[0]
        assert session.meeting_id == URL
        assert session.room_id == "C1"
        assert session.requester == "user@example.com"
        assert session.state is SessionState.ACTIVE

        texts = source.texts_for("C1")
        assert "Meeting invitation detected" in texts[0]
        assert URL in texts[0]
        assert any("Trying to join" in text for text in texts)
        await bot.shutdown()

    @pytest.mark.asyncio
    async def test_repeated_link_reuses_session(self, bot, source, join_provider):
        await bot.initialize()
        source.pages = [
            [make_message("m1", f"Join us: {URL}")],
            [make_message("m2", f"again {URL}/"), make_message("m1", f"Join us: {URL}")],
        ]

        await bot.scheduler.tick()
        await bot.scheduler.tick()

        assert bot.registry.active_count == 1
        assert join_provider.calls == [URL]
        await bot.shutdown()

    @pytest.mark.asyncio
    async def test_link_takes_precedence_over_reply(self, bot, source):
        await bot.initialize()
        await bot.handle_message(make_message("m1", f"bot, help me join {URL}"))

        assert bot.registry.active_count == 1
        assert not any("How I can help" in text for text in source.texts_for("C1"))
        await bot.shutdown()

    @pytest.mark.asyncio
    async def test_invitation_without_link_uses_room_meeting(self, bot, source):
        await bot.initialize()
        source.metadata["C1"] = {"meetingLink": "https://company.webex.com/meet/room-1"}

        await bot.handle_message(make_message("m1", "please join the meeting"))

        assert bot.registry.get_active("https://company.webex.com/meet/room-1") is not None
        await bot.shutdown()

    @pytest.mark.asyncio
    async def test_unresolved_invitation_gets_hint(self, bot, source):
        await bot.initialize()

        result = await bot.handle_invitation(make_message("m1", "please join the meeting"))

        assert result is None
        assert bot.registry.active_count == 0
        assert "couldn't find the link" in source.texts_for("C1")[-1]

    @pytest.mark.asyncio
    async def test_join_failure_allows_retry(self, bot, source, join_provider):
        await bot.initialize()
        join_provider.error = RuntimeError("meeting locked")

        await bot.handle_message(make_message("m1", URL))

        assert bot.registry.active_count == 0
        assert bot.registry.get_archived(URL).end_reason == "join_failed"

        join_provider.error = None
        await bot.handle_message(make_message("m2", URL))

        assert bot.registry.get_active(URL).state is SessionState.ACTIVE
        await bot.shutdown()


class TestReplies:
    """Test keyword replies."""

    @pytest.mark.asyncio
    async def test_help_reply(self, bot, source):
        await bot.initialize()
        source.default_page = [make_message("m1", "bot, can you help?")]

        await bot.scheduler.tick()

        assert bot.registry.active_count == 0
        texts = source.texts_for("C1")
        assert len(texts) == 1
        assert texts[0].startswith("🆘 **How I can help:**")

    @pytest.mark.asyncio
    async def test_no_trigger_no_reply(self, bot, source):
        await bot.initialize()
        await bot.handle_message(make_message("m1", "lunch at noon?"))
        assert source.posted == []

    @pytest.mark.asyncio
    async def test_own_replies_not_answered(self, bot, source):
        await bot.initialize()
        source.default_page = [make_message("m1", "bot help", person_id=BOT_ID)]

        assert await bot.scheduler.tick() == 0
        assert source.posted == []


class TestEndingSessions:
    """Test manual and chat-driven session ends."""

    @pytest.mark.asyncio
    async def test_end_posts_summary(self, bot, source, clock):
        await bot.initialize()
        await bot.handle_message(make_message("m1", URL))
        for text in ("hello all", "decision: ship Friday", "thanks"):
            clock.advance(seconds=30)
            await bot.lifecycle.accumulator.append(URL, TranscriptEntry(timestamp=clock(), text=text))

        archived = await bot.end_session(URL)

        assert archived.state is SessionState.ENDED
        summary = source.texts_for("C1")[-1]
        assert summary == archived.summary
        assert "Entries: 3" in summary
        assert "decision: ship Friday" in summary
        assert bot.get_transcript(URL)["state"] == "ended"

    @pytest.mark.asyncio
    async def test_end_unknown_raises(self, bot):
        with pytest.raises(SessionNotFoundError):
            await bot.end_session("nope")

    @pytest.mark.asyncio
    async def test_end_by_unnormalised_url(self, bot):
        await bot.initialize()
        await bot.handle_message(make_message("m1", URL))

        archived = await bot.end_session("HTTPS://Company.webex.com/meet/abc123/")

        assert archived.meeting_id == URL

    @pytest.mark.asyncio
    async def test_end_command_in_chat(self, bot, source):
        await bot.initialize()
        await bot.handle_message(make_message("m1", URL))

        await bot.handle_message(make_message("m2", "bot, end meeting"))

        assert bot.registry.active_count == 0
        assert bot.registry.get_archived(URL).end_reason == "requested"
        assert source.texts_for("C1")[-1].startswith("📋 **Meeting summary**")

    @pytest.mark.asyncio
    async def test_unknown_transcript_raises(self, bot):
        with pytest.raises(SessionNotFoundError):
            bot.get_transcript("nope")


class TestManualJoin:
    """Test joins requested over the API."""

    @pytest.mark.asyncio
    async def test_manual_join_runs_in_background(self, bot, source):
        await bot.initialize()

        result = await bot.manual_join(URL, room_id="C1")

        assert result == {"created": True, "meeting_id": URL, "state": "joining"}
        assert await wait_until(lambda: bot.registry.get_active(URL).state is SessionState.ACTIVE)

        again = await bot.manual_join(URL, room_id="C1")
        assert again["created"] is False
        await bot.shutdown()

    @pytest.mark.asyncio
    async def test_manual_join_by_identifier(self, bot):
        await bot.initialize()
        result = await bot.manual_join("  room-42 ")
        assert result["meeting_id"] == "room-42"
        await bot.shutdown()

    @pytest.mark.asyncio
    async def test_manual_join_requires_value(self, bot):
        with pytest.raises(ValueError):
            await bot.manual_join("   ")


class TestLifecycle:
    """Test bot startup, status and shutdown."""

    @pytest.mark.asyncio
    async def test_initialize_failure(self, bot, source):
        source.identity_error = PermissionDeniedError("401 on GET /people/me")

        assert await bot.initialize() is False
        assert bot.init_error == "401 on GET /people/me"
        assert not bot.healthy
        with pytest.raises(InitializationError):
            await bot.start()

    @pytest.mark.asyncio
    async def test_start_runs_initial_poll(self, bot, source):
        await bot.initialize()
        source.default_page = [make_message("m1", "hello")]

        await bot.start()
        try:
            assert bot.is_running
            assert bot.healthy
            assert source.fetch_calls == 1
            assert bot.ledger.seen("m1")
        finally:
            await bot.shutdown()
        assert not bot.scheduler.is_running

    @pytest.mark.asyncio
    async def test_shutdown_ends_sessions_and_closes(self, bot, source, join_provider):
        await bot.initialize()
        await bot.handle_message(make_message("m1", URL))
        await bot.handle_message(make_message("m2", "https://company.webex.com/meet/other", room_id="C2"))

        ended = await bot.shutdown()

        assert len(ended) == 2
        assert bot.registry.active_count == 0
        assert bot.registry.archived_count == 2
        assert all(s.end_reason == "shutdown" for s in bot.registry.archived_sessions())
        assert source.texts_for("C2")[-1].startswith("📋 **Meeting summary**")
        assert source.closed
        assert join_provider.closed
        assert not bot.is_running

    @pytest.mark.asyncio
    async def test_second_shutdown_is_noop(self, bot, source):
        await bot.initialize()
        await bot.handle_message(make_message("m1", URL))

        assert len(await bot.shutdown()) == 1
        assert await bot.shutdown() == []
        assert source.close_calls == 1
        assert bot.registry.archived_count == 1

    @pytest.mark.asyncio
    async def test_shutdown_waits_for_running_poll(self, bot, source):
        await bot.initialize()
        source.default_page = [make_message("m1", URL)]
        fetch = source.fetch_recent_messages
        fetching = asyncio.Event()

        async def slow_fetch(*args, **kwargs):
            fetching.set()
            await asyncio.sleep(0.05)
            return await fetch(*args, **kwargs)

        source.fetch_recent_messages = slow_fetch
        tick = asyncio.create_task(bot.scheduler.tick())
        await fetching.wait()

        await bot.shutdown()

        assert tick.done()
        assert await tick == 0
        assert bot.registry.active_count == 0
        assert bot.lifecycle.capturing_count == 0
        assert source.closed

    @pytest.mark.asyncio
    async def test_missing_token_fails_initialize(self, bot):
        client = WebexClient(WebexSettings(access_token=""))
        bot.source = client

        assert await bot.initialize() is False
        assert bot.init_error == "WEBEX_ACCESS_TOKEN is not set"
        await client.close()

    @pytest.mark.asyncio
    async def test_status_snapshot(self, bot, source):
        await bot.initialize()
        await bot.handle_message(make_message("m1", URL))

        status = bot.get_status()

        assert status["bot"]["id"] == BOT_ID
        assert status["active_sessions"] == 1
        assert status["backoff"]["penalized"] is False
        assert any("Meeting invitation detected" in record["message"] for record in status["logs"])
        assert "active=1" in bot._heartbeat_line()
        await bot.shutdown()
