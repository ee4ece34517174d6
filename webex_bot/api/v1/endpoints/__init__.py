"""
API v1 endpoints.
"""

from . import health, meetings

__all__ = ["health", "meetings"]
