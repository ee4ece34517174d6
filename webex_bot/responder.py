"""
Keyword-triggered chat replies.
"""

import random
from typing import Optional, Sequence, Tuple

TRIGGER_KEYWORDS = (
    "bot", "assistant", "help", "what do you think", "question", "summary",
    "בוט", "עוזר", "עזרה", "מה דעתך", "שאלה", "סיכום",
)

END_COMMANDS = (
    "end meeting", "stop meeting", "leave meeting",
    "סיים ישיבה", "סיום ישיבה", "צא מהישיבה",
)

# (category, keywords, reply); first match wins
CATEGORY_REPLIES: Sequence[Tuple[str, Sequence[str], str]] = (
    (
        "greeting",
        ("hello", "hi ", "שלום"),
        "Hello! 👋 I'm the Webex meeting bot.\n\n"
        "🎤 I spot meeting invitations\n"
        "💬 I answer in chat\n"
        "📝 I post meeting summaries",
    ),
    (
        "how_are_you",
        ("how are you", "מה שלומך"),
        "I'm a bot, so always in great shape! 🤖\n\n"
        "✅ Systems up\n"
        "📡 Connected to Webex\n"
        "🔍 Watching for meeting invitations",
    ),
    (
        "summary",
        ("summary", "סיכום"),
        "I can help with a summary! 📝\n\n"
        "💡 Send me the key points\n"
        "📋 and I'll organise them\n"
        "🎯 with follow-up actions",
    ),
    (
        "opinion",
        ("what do you think", "מה דעתך"),
        "Interesting topic! 🤔\n\n"
        "💭 What do the others think?\n"
        "📊 Maybe take a quick vote?\n"
        "🎯 Or set up a follow-up meeting?",
    ),
    (
        "help",
        ("help", "עזרה"),
        "🆘 **How I can help:**\n\n"
        "📞 **Meeting detection** - paste a Webex link and I'll join\n"
        "💬 **Replies** - I respond to keywords\n"
        "📝 **Summaries** - I post one when the meeting ends\n"
        "🛑 **End meeting** - say \"end meeting\" to stop the session",
    ),
    (
        "thanks",
        ("thanks", "thank you", "תודה"),
        "My pleasure! 😊\n\nI'm here 24/7 🤖",
    ),
)

FALLBACK_REPLIES = (
    "I heard you! 👂\n\nInteresting... I have a few thoughts on that",
    "Good point! 💡\n\nWhat do the other participants think?",
    "Noted 📋\n\nThis could matter for the summary",
    "This needs more discussion 💭\n\nMaybe set aside some extra time?",
    "Listening and learning! 🤖\n\nKeep going, this is interesting",
)


def should_respond(text: Optional[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(trigger in lowered for trigger in TRIGGER_KEYWORDS)


def is_end_command(text: Optional[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(command in lowered for command in END_COMMANDS)


def match_category(text: str) -> Optional[str]:
    # pad so "hi" only matches as a word at the end of the message
    lowered = f"{text.lower()} "
    for category, keywords, _ in CATEGORY_REPLIES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return None


class Responder:
    """
    Picks a reply for a triggering message.

    Known categories map to a fixed reply; anything else gets one of the
    fallback replies, chosen with the injected random generator.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def reply_for_category(self, category: str) -> str:
        for name, _, reply in CATEGORY_REPLIES:
            if name == category:
                return reply
        raise KeyError(category)

    def generate(self, text: str) -> str:
        category = match_category(text)
        if category is not None:
            return self.reply_for_category(category)
        return self.rng.choice(FALLBACK_REPLIES)
