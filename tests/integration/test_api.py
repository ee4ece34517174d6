"""Tests for the HTTP status and control API."""

import pytest
from fastapi.testclient import TestClient

from webex_bot.core.dependencies import set_meeting_bot_instance
from webex_bot.core.exceptions import PermissionDeniedError
from webex_bot.main import create_app

URL = "https://company.webex.com/meet/abc123"


@pytest.fixture
def client(bot):
    """Test client running the app lifespan around the injected bot."""
    set_meeting_bot_instance(bot)
    try:
        with TestClient(create_app()) as test_client:
            yield test_client
    finally:
        set_meeting_bot_instance(None)


class TestHealth:
    """Test health and status endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "running" in response.json()["message"]

    def test_health_ok(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["healthy"] is True
        assert data["messages_processed"] == 0
        assert client.get("/health").status_code == 200

    def test_health_unavailable_when_init_fails(self, bot, source):
        source.identity_error = PermissionDeniedError("401 on GET /people/me")
        set_meeting_bot_instance(bot)
        try:
            with TestClient(create_app()) as test_client:
                response = test_client.get("/api/v1/health")
                status = test_client.get("/api/v1/status").json()
        finally:
            set_meeting_bot_instance(None)

        assert response.status_code == 503
        assert response.json()["healthy"] is False
        assert status["running"] is False
        assert status["init_error"] == "401 on GET /people/me"

    def test_no_bot_is_service_unavailable(self):
        set_meeting_bot_instance(None)
        response = TestClient(create_app()).get("/api/v1/status")
        assert response.status_code == 503

    def test_status(self, client):
        response = client.get("/api/v1/status")

        assert response.status_code == 200
        data = response.json()
        assert data["running"] is True
        assert data["bot"]["display_name"] == "Meeting Bot"
        assert "message_polling" in {job["id"] for job in data["upcoming_jobs"]}


class TestMeetings:
    """Test meeting endpoints."""

    def test_manual_join_and_list(self, client, source):
        response = client.post("/api/v1/meetings/join", json={"meeting_url": URL, "room_id": "C1"})

        assert response.status_code == 200
        data = response.json()
        assert data["created"] is True
        assert data["meeting_id"] == URL
        assert data["message"] == "Processing join request..."

        again = client.post("/api/v1/meetings/join", json={"meeting_url": URL, "room_id": "C1"})
        assert again.json()["message"] == "Session already active"

        sessions = client.get("/api/v1/meetings").json()
        assert [session["meeting_id"] for session in sessions] == [URL]

    def test_manual_join_requires_url(self, client):
        response = client.post("/api/v1/meetings/join", json={"room_id": "C1"})
        assert response.status_code == 400

        response = client.post("/api/v1/meetings/join", json={"meeting_url": "  "})
        assert response.status_code == 400

    def test_end_and_transcript(self, client):
        client.post("/api/v1/meetings/join", json={"meeting_url": "room-42"})

        response = client.post("/api/v1/meetings/room-42/end")

        assert response.status_code == 200
        assert response.json()["state"] == "ended"
        assert response.json()["summary"].startswith("📋 **Meeting summary**")

        transcript = client.get("/api/v1/meetings/room-42/transcript")
        assert transcript.status_code == 200
        assert transcript.json()["entries"] == []

        archive = client.get("/api/v1/meetings/archive").json()
        assert [session["meeting_id"] for session in archive] == ["room-42"]

    def test_unknown_meeting(self, client):
        assert client.get("/api/v1/meetings/nope/transcript").status_code == 404
        assert client.post("/api/v1/meetings/nope/end").status_code == 404

    def test_shutdown_ends_sessions(self, client, bot):
        client.post("/api/v1/meetings/join", json={"meeting_url": "room-42"})

        response = client.post("/api/v1/shutdown")

        assert response.status_code == 200
        assert response.json()["ended_sessions"] == ["room-42"]
        assert not bot.is_running
