"""
Simulated providers.

The bot has no media-level access to Webex meetings, so joining reports an
unclear outcome and the transcript is a fixed rotation of sample lines.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from webex_bot.core.logging import get_logger
from webex_bot.domain.models import JoinResult, MeetingSession, TranscriptEntry
from webex_bot.utils import Clock, now as default_now
from .base import JoinProvider, TranscriptionProvider

logger = get_logger("providers")


DEFAULT_SCRIPT: List[Tuple[str, str]] = [
    ("Dana", "Good morning everyone, let's get started"),
    ("Yossi", "Quick team update on the release"),
    ("Dana", "We need to review the budget for next quarter"),
    ("Michal", "I think the integration work is on track"),
    ("Yossi", "Decision: we ship the beta on Friday"),
    ("Michal", "Action item for me: send the notes to the customer"),
    ("Dana", "Any other questions before we wrap up?"),
]


class SimulatedJoinProvider(JoinProvider):
    """
    Pretends to join. Reports an unclear result, which the lifecycle
    treats the same as a confirmed join.
    """

    def __init__(self, detail: str = "chat-only mode: media join requires additional permissions"):
        self.detail = detail
        self.joined_meetings: List[str] = []

    async def join(self, session: MeetingSession) -> JoinResult:
        logger.info(f"Simulated join for {session.meeting_id}")
        self.joined_meetings.append(session.meeting_id)
        return JoinResult(joined=None, detail=self.detail)

    async def leave(self, session: MeetingSession) -> None:
        logger.debug(f"Simulated leave for {session.meeting_id}")


class ScriptedTranscriptionProvider(TranscriptionProvider):
    """
    Cycles through a fixed script, one line per call, per session.
    """

    def __init__(
        self,
        script: Optional[Sequence[Tuple[str, str]]] = None,
        clock: Clock = default_now,
        confidence: float = 0.9,
        loop: bool = True,
    ):
        self.script = list(script if script is not None else DEFAULT_SCRIPT)
        self.clock = clock
        self.confidence = confidence
        self.loop = loop
        self._positions: Dict[str, int] = {}

    async def next_entry(self, session: MeetingSession) -> Optional[TranscriptEntry]:
        if not self.script:
            return None

        position = self._positions.get(session.meeting_id, 0)
        if position >= len(self.script):
            if not self.loop:
                return None
            position = 0

        speaker, text = self.script[position]
        self._positions[session.meeting_id] = position + 1
        return TranscriptEntry(
            timestamp=self.clock(),
            speaker=speaker,
            text=text,
            confidence=self.confidence,
        )

    async def close(self) -> None:
        self._positions.clear()
