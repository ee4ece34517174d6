"""
Utility functions for recognising Webex meeting links and invitations in text.
"""

import re
from typing import List, Optional
from urllib.parse import parse_qs, urlsplit, urlunsplit


# Regex patterns for Webex meeting URLs
MEETING_URL_PATTERNS = [
    r'https://[\w.-]*\.webex\.com/meet/[^\s<>"\']+',
    r'https://[\w.-]*\.webex\.com/join/[^\s<>"\']+',
    r'webex\.com/\S*/j\.php',
    r'webex\.com/wbxmjs/joinservice/',
]

# Free-text invitation phrases, English and Hebrew
INVITATION_PHRASES = [
    r'webex meeting',
    r'join.*meeting',
    r'meeting.*url',
    r'meeting link',
    r'ישיבת webex',
    r'הצטרפ\S*.*לישיבה',
    r'קישור לישיבה',
    r'הזמנה לישיבה',
]

_COMPILED_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in MEETING_URL_PATTERNS + INVITATION_PHRASES
]

_TRAILING_PUNCTUATION = '.,;:!?)]}>\'"'


def contains_meeting_reference(text: Optional[str]) -> bool:
    """
    Check whether text looks like a meeting invitation.

    Args:
        text: Message body.

    Returns:
        True if a meeting link or an invitation phrase is present.
    """
    if not text:
        return False
    return any(pattern.search(text) for pattern in _COMPILED_PATTERNS)


def extract_meeting_url(text: Optional[str], domain_token: str = "webex") -> Optional[str]:
    """
    Extract the first https URL that contains the platform's domain token.

    Args:
        text: Text to search.
        domain_token: Substring the URL must contain.

    Returns:
        The URL with trailing punctuation removed, or None.
    """
    if not text:
        return None

    pattern = re.compile(rf'(https://[^\s]*{re.escape(domain_token)}[^\s]*)', re.IGNORECASE)
    match = pattern.search(text)
    if not match:
        return None

    url = match.group(1).rstrip(_TRAILING_PUNCTUATION)
    return url or None


def extract_all_meeting_urls(text: Optional[str], domain_token: str = "webex") -> List[str]:
    """
    Extract all meeting URLs from text, in order of appearance.
    """
    if not text:
        return []

    pattern = re.compile(rf'https://[^\s]*{re.escape(domain_token)}[^\s]*', re.IGNORECASE)
    results = []
    for match in pattern.findall(text):
        url = match.rstrip(_TRAILING_PUNCTUATION)
        if url and url not in results:
            results.append(url)
    return results


def normalize_meeting_url(url: str) -> str:
    """
    Normalize a meeting URL for consistent comparison.

    The host is lowercased; query, fragment and trailing slash are dropped.
    ``j.php`` links keep their ``MTID`` parameter since it carries the meeting.
    """
    if not url:
        return ""

    parts = urlsplit(url.strip())
    query = ""
    if parts.path.lower().endswith("/j.php"):
        mtid = parse_qs(parts.query).get("MTID")
        if mtid:
            query = f"MTID={mtid[0]}"

    path = parts.path.rstrip('/')
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, query, ""))


def meeting_key(url: str) -> Optional[str]:
    """
    Short meeting key from a URL: the last path segment, or the MTID of a
    j.php link.

    Example:
        https://company.webex.com/meet/abc123 -> abc123
    """
    if not url:
        return None

    parts = urlsplit(url)
    if parts.path.lower().endswith("/j.php"):
        mtid = parse_qs(parts.query).get("MTID")
        return mtid[0] if mtid else None

    segments = [segment for segment in parts.path.split('/') if segment]
    return segments[-1] if segments else None
