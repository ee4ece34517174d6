"""
Data models for chat messages and meeting sessions.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence
from enum import Enum

from dateutil.parser import isoparse


class SessionState(str, Enum):
    """Lifecycle states of a meeting session."""
    PENDING = "pending"
    JOINING = "joining"
    ACTIVE = "active"
    ENDED = "ended"


@dataclass(frozen=True)
class Message:
    """
    A chat message as returned by the messages API.
    """
    id: str
    person_id: str
    room_id: str
    person_email: Optional[str] = None
    text: Optional[str] = None
    created: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Message":
        """Build a message from the Webex JSON shape."""
        created = data.get("created")
        return cls(
            id=data["id"],
            person_id=data.get("personId", ""),
            room_id=data.get("roomId", ""),
            person_email=data.get("personEmail"),
            text=data.get("text"),
            created=isoparse(created) if created else None,
        )


@dataclass(frozen=True)
class BotIdentity:
    """The bot's own account."""
    id: str
    display_name: str
    emails: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "BotIdentity":
        return cls(
            id=data["id"],
            display_name=data.get("displayName", ""),
            emails=list(data.get("emails", [])),
        )

    @property
    def email(self) -> Optional[str]:
        return self.emails[0] if self.emails else None


@dataclass(frozen=True)
class TranscriptEntry:
    """
    A single transcribed utterance. Immutable once appended.
    """
    timestamp: datetime
    text: str
    speaker: str = "unknown"
    confidence: float = 1.0
    important: bool = False

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "speaker": self.speaker,
            "text": self.text,
            "confidence": self.confidence,
            "important": self.important,
        }


@dataclass(frozen=True)
class JoinResult:
    """
    Outcome reported by a join provider.

    ``joined`` is None when the provider cannot tell whether it got in.
    """
    joined: Optional[bool] = None
    detail: str = ""

    @property
    def is_unclear(self) -> bool:
        return self.joined is not True


@dataclass
class MeetingSession:
    """
    One tracked meeting-join attempt with its transcript and summary.
    """
    meeting_id: str
    meeting_url: Optional[str]
    created_at: datetime
    room_id: Optional[str] = None
    requester: Optional[str] = None
    state: SessionState = SessionState.PENDING
    entries: Sequence[TranscriptEntry] = field(default_factory=list)
    summary: Optional[str] = None
    ended_at: Optional[datetime] = None
    end_reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_active(self) -> bool:
        """Check if the session still occupies its meeting identifier."""
        return self.state is not SessionState.ENDED

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    @property
    def important_entries(self) -> List[TranscriptEntry]:
        return [entry for entry in self.entries if entry.important]

    def add_entry(self, entry: TranscriptEntry) -> None:
        """Append a transcript entry; only legal while capturing."""
        if self.state is not SessionState.ACTIVE:
            raise ValueError(f"Cannot append to session in state {self.state.value}")
        self.entries.append(entry)

    def set_summary(self, summary: str) -> None:
        if self.summary is not None:
            raise ValueError(f"Summary for {self.meeting_id} already set")
        self.summary = summary

    def frozen_copy(self) -> "MeetingSession":
        """Snapshot used by the archive; the transcript becomes a tuple."""
        return replace(self, entries=tuple(self.entries))

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "meeting_id": self.meeting_id,
            "meeting_url": self.meeting_url,
            "room_id": self.room_id,
            "requester": self.requester,
            "state": self.state.value,
            "created_at": self.created_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "end_reason": self.end_reason,
            "entry_count": self.entry_count,
            "important_count": len(self.important_entries),
            "has_summary": self.summary is not None,
            "error": self.error,
        }

    def transcript_dict(self) -> dict:
        """Session details plus the full transcript."""
        data = self.to_dict()
        data["entries"] = [entry.to_dict() for entry in self.entries]
        data["summary"] = self.summary
        return data


@dataclass
class BackoffState:
    """
    Polling cadence, including the penalized regime after a rate limit.
    """
    base_interval_seconds: float
    interval_seconds: float = 0.0
    penalized: bool = False
    penalty_until: Optional[datetime] = None
    last_success_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.interval_seconds:
            self.interval_seconds = self.base_interval_seconds

    def in_penalty(self, now: datetime) -> bool:
        return self.penalized and self.penalty_until is not None and now < self.penalty_until

    def penalize(self, now: datetime, window_seconds: float) -> datetime:
        self.penalized = True
        self.interval_seconds = window_seconds
        self.penalty_until = now + timedelta(seconds=window_seconds)
        return self.penalty_until

    def restore(self) -> None:
        self.penalized = False
        self.penalty_until = None
        self.interval_seconds = self.base_interval_seconds

    def record_success(self, now: datetime) -> None:
        self.last_success_at = now
        self.restore()

    def to_dict(self) -> dict:
        return {
            "interval_seconds": self.interval_seconds,
            "penalized": self.penalized,
            "penalty_until": self.penalty_until.isoformat() if self.penalty_until else None,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
        }
