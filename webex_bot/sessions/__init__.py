"""
Meeting session registry, lifecycle and transcript handling.
"""

from .registry import SessionRegistry
from .summary import build_summary, elapsed_minutes
from .transcript import TranscriptAccumulator, IMPORTANT_KEYWORDS, is_important
from .lifecycle import SessionLifecycle, IllegalTransitionError, transition

__all__ = [
    "SessionRegistry",
    "build_summary",
    "elapsed_minutes",
    "TranscriptAccumulator",
    "IMPORTANT_KEYWORDS",
    "is_important",
    "SessionLifecycle",
    "IllegalTransitionError",
    "transition",
]
