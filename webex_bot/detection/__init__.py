"""
Meeting invitation detection.
"""

from .detector import InvitationDetector, MeetingReference
from .url_extractor import (
    contains_meeting_reference,
    extract_meeting_url,
    extract_all_meeting_urls,
    normalize_meeting_url,
    meeting_key,
)

__all__ = [
    "InvitationDetector",
    "MeetingReference",
    "contains_meeting_reference",
    "extract_meeting_url",
    "extract_all_meeting_urls",
    "normalize_meeting_url",
    "meeting_key",
]
