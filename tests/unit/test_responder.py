"""Tests for keyword replies."""

import random

import pytest

from webex_bot.responder import (
    FALLBACK_REPLIES,
    Responder,
    is_end_command,
    match_category,
    should_respond,
)


class TestTriggers:
    """Test trigger and command recognition."""

    @pytest.mark.parametrize("text", [
        "bot, can you help?",
        "Quick QUESTION for the assistant",
        "can I get a summary",
        "בוט, מה דעתך?",
    ])
    def test_should_respond(self, text):
        assert should_respond(text)

    @pytest.mark.parametrize("text", [None, "", "lunch at noon?"])
    def test_should_not_respond(self, text):
        assert not should_respond(text)

    def test_end_commands(self):
        assert is_end_command("bot, end meeting please")
        assert is_end_command("סיים ישיבה")
        assert not is_end_command("the meeting ended yesterday")
        assert not is_end_command(None)


class TestMatchCategory:
    """Test category selection."""

    @pytest.mark.parametrize("text, category", [
        ("bot, can you help?", "help"),
        ("hello bot", "greeting"),
        ("bot hi", "greeting"),
        ("bot how are you", "how_are_you"),
        ("bot, what do you think?", "opinion"),
        ("thanks bot", "thanks"),
        ("bot שלום", "greeting"),
    ])
    def test_categories(self, text, category):
        assert match_category(text) == category

    def test_hi_inside_word_does_not_match(self):
        assert match_category("bot, this is it") is None


class TestResponder:
    """Test Responder."""

    def test_help_reply(self):
        reply = Responder().generate("bot, can you help?")
        assert reply.startswith("🆘 **How I can help:**")

    def test_fallback_is_seeded(self):
        first = Responder(random.Random(42)).generate("bot, the build is red")
        second = Responder(random.Random(42)).generate("bot, the build is red")

        assert first == second
        assert first in FALLBACK_REPLIES

    def test_unknown_category(self):
        with pytest.raises(KeyError):
            Responder().reply_for_category("weather")
