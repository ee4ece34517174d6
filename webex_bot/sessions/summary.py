"""
End-of-session summary synthesis.
"""

from datetime import tzinfo
from typing import List, Optional

from webex_bot.domain.models import MeetingSession, TranscriptEntry
from webex_bot.utils import format_local_time


def elapsed_minutes(session: MeetingSession) -> int:
    if session.ended_at is None:
        raise ValueError(f"Session {session.meeting_id} has not ended")
    seconds = (session.ended_at - session.created_at).total_seconds()
    return max(0, int(seconds // 60))


def format_entry(entry: TranscriptEntry, tz: Optional[tzinfo] = None) -> str:
    return f"[{format_local_time(entry.timestamp, tz)}] {entry.speaker}: {entry.text}"


def build_summary(
    session: MeetingSession,
    max_entries: int = 5,
    tz: Optional[tzinfo] = None
) -> str:
    """
    Build the summary posted when a session ends.

    The output depends only on the session's timestamps and transcript, so
    the same ended session always yields the same text.

    Args:
        session: An ended session.
        max_entries: How many transcript entries to list before "+N more".
        tz: Zone for entry times (the configured zone by default).

    Returns:
        Markdown summary text.
    """
    entries = list(session.entries)
    count = len(entries)

    lines: List[str] = [
        "📋 **Meeting summary**",
        f"🔗 {session.meeting_url or session.meeting_id}",
        f"⏱️ Duration: {elapsed_minutes(session)} minutes | 💬 Entries: {count}",
    ]

    if count:
        lines.append("")
        lines.append("**Transcript:**")
        lines.extend(format_entry(entry, tz) for entry in entries[:max_entries])
        if count > max_entries:
            lines.append(f"+{count - max_entries} more")

        important = [entry for entry in entries if entry.important]
        if important:
            lines.append("")
            lines.append("**Important points:**")
            lines.extend(f"• {entry.text}" for entry in important[:max_entries])

    return "\n".join(lines)
