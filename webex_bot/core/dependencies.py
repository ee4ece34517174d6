"""
Dependency injection for the Webex Meeting Bot API.
Provides the bot instance to API endpoints.
"""

from typing import Optional, TYPE_CHECKING
from fastapi import Depends

from webex_bot.core.exceptions import HTTPServiceUnavailable

if TYPE_CHECKING:
    from webex_bot.bot import WebexMeetingBot

_meeting_bot_instance: Optional["WebexMeetingBot"] = None


def set_meeting_bot_instance(instance: Optional["WebexMeetingBot"]) -> None:
    """Set the global meeting bot instance."""
    global _meeting_bot_instance
    _meeting_bot_instance = instance


def get_meeting_bot_instance() -> Optional["WebexMeetingBot"]:
    return _meeting_bot_instance


async def get_meeting_bot_service() -> "WebexMeetingBot":
    """
    Dependency injection for the bot.

    Raises:
        HTTPException: If the bot has not been created yet
    """
    if _meeting_bot_instance is None:
        raise HTTPServiceUnavailable("Meeting bot service not initialized")

    return _meeting_bot_instance


MeetingBotDep = Depends(get_meeting_bot_service)
