"""
Message source adapters.
"""

from .base import MessageSourceBase
from .client import WebexClient

__all__ = [
    "MessageSourceBase",
    "WebexClient",
]
