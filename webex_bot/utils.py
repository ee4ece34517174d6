"""
Utility functions for the Webex Meeting Bot.
"""

from datetime import datetime, tzinfo
from typing import Callable, Optional

from webex_bot.config import settings

Clock = Callable[[], datetime]


def now() -> datetime:
    """Current time in the configured timezone."""
    return datetime.now(settings.tz_info)


def format_local_time(dt: datetime, tz: Optional[tzinfo] = None) -> str:
    """
    Format a timestamp as HH:MM:SS local time.

    Args:
        dt: Timestamp to format.
        tz: Zone to render in (the configured zone by default).

    Returns:
        Formatted time string.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(tz or settings.tz_info)
    return dt.strftime("%H:%M:%S")


def format_duration(seconds: float) -> str:
    """Compact uptime string, e.g. "1h 30m 45s"; zero renders as "0s"."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    parts = [f"{value}{unit}" for value, unit in ((hours, "h"), (minutes, "m")) if value]
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def truncate_text(text: str, max_length: int = 50, suffix: str = "...") -> str:
    """Shorten text for log lines, keeping the result within ``max_length``."""
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
