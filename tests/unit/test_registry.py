"""Tests for the session registry and session model."""

import asyncio
from datetime import datetime, timezone

import pytest

from webex_bot.domain.models import MeetingSession, SessionState, TranscriptEntry
from webex_bot.sessions import SessionRegistry

NOW = datetime(2024, 5, 1, 9, 0, 0, tzinfo=timezone.utc)


def factory_for(meeting_id, room_id="C1"):
    def factory():
        return MeetingSession(meeting_id=meeting_id, meeting_url=None, created_at=NOW, room_id=room_id)
    return factory


class TestSessionRegistry:
    """Test SessionRegistry."""

    @pytest.mark.asyncio
    async def test_create_if_absent(self):
        registry = SessionRegistry()

        first, created = await registry.create_if_absent("m1", factory_for("m1"))
        again, created_again = await registry.create_if_absent("m1", factory_for("m1"))

        assert created is True
        assert created_again is False
        assert again is first
        assert registry.active_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_creation_yields_one_session(self):
        registry = SessionRegistry()

        results = await asyncio.gather(*[
            registry.create_if_absent("m1", factory_for("m1")) for _ in range(5)
        ])

        assert sum(1 for _, created in results if created) == 1
        assert len({id(session) for session, _ in results}) == 1

    @pytest.mark.asyncio
    async def test_factory_must_match_identifier(self):
        registry = SessionRegistry()
        with pytest.raises(ValueError):
            await registry.create_if_absent("m1", factory_for("other"))

    @pytest.mark.asyncio
    async def test_archive_moves_session_and_keeps_history(self):
        registry = SessionRegistry()
        session, _ = await registry.create_if_absent("m1", factory_for("m1"))
        session.state = SessionState.ENDED

        snapshot = registry.archive(session)

        assert registry.get_active("m1") is None
        assert registry.get_archived("m1") is snapshot
        assert isinstance(snapshot.entries, tuple)

        second, created = await registry.create_if_absent("m1", factory_for("m1"))
        assert created is True
        second.state = SessionState.ENDED
        registry.archive(second)

        assert len(registry.archived_history("m1")) == 2
        assert registry.archived_count == 2

    @pytest.mark.asyncio
    async def test_archive_requires_ended(self):
        registry = SessionRegistry()
        session, _ = await registry.create_if_absent("m1", factory_for("m1"))
        with pytest.raises(ValueError):
            registry.archive(session)

    @pytest.mark.asyncio
    async def test_get_prefers_active(self):
        registry = SessionRegistry()
        old, _ = await registry.create_if_absent("m1", factory_for("m1"))
        old.state = SessionState.ENDED
        registry.archive(old)
        current, _ = await registry.create_if_absent("m1", factory_for("m1"))

        assert registry.get("m1") is current
        assert registry.get("unknown") is None

    @pytest.mark.asyncio
    async def test_sessions_for_room(self):
        registry = SessionRegistry()
        await registry.create_if_absent("m1", factory_for("m1", room_id="C1"))
        await registry.create_if_absent("m2", factory_for("m2", room_id="C2"))

        assert [s.meeting_id for s in registry.sessions_for_room("C1")] == ["m1"]


class TestMeetingSession:
    """Test MeetingSession invariants."""

    def test_add_entry_requires_active(self):
        session = factory_for("m1")()
        with pytest.raises(ValueError):
            session.add_entry(TranscriptEntry(timestamp=NOW, text="hi"))

    def test_summary_set_once(self):
        session = factory_for("m1")()
        session.set_summary("done")
        with pytest.raises(ValueError):
            session.set_summary("again")

    def test_confidence_bounds(self):
        with pytest.raises(ValueError):
            TranscriptEntry(timestamp=NOW, text="hi", confidence=1.5)
