"""
Base class for message sources.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from webex_bot.domain.models import BotIdentity, Message


class MessageSourceBase(ABC):
    """
    Abstract base class for conversation services.
    Defines the interface the bot uses to read and post chat messages.
    """

    @abstractmethod
    async def get_current_identity(self) -> BotIdentity:
        """
        Get the bot's own account.

        Returns:
            The authenticated identity.
        """
        pass

    @abstractmethod
    async def fetch_recent_messages(
        self,
        max_messages: int = 20,
        room_id: Optional[str] = None
    ) -> List[Message]:
        """
        Fetch a bounded page of recent messages, most recent first.

        Args:
            max_messages: Page size.
            room_id: Optional room filter.

        Returns:
            List of Message objects.
        """
        pass

    @abstractmethod
    async def post_message(self, room_id: str, text: str) -> None:
        """
        Post a text message to a room.

        Args:
            room_id: Destination room.
            text: Message body (markdown allowed).
        """
        pass

    async def get_conversation_metadata(self, room_id: str) -> Dict[str, Any]:
        """
        Get meeting metadata bound to a room.

        Returns:
            Mapping that may contain ``meetingId`` and ``meetingLink``.
        """
        return {}

    async def close(self) -> None:
        """Release transport resources."""
        return None
