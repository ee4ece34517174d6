"""
Configuration module for the Webex Meeting Bot.
"""

from .settings import (
    Settings,
    settings,
    WebexSettings,
    PollingSettings,
    SessionSettings,
    ApiSettings,
)

__all__ = [
    "Settings",
    "settings",
    "WebexSettings",
    "PollingSettings",
    "SessionSettings",
    "ApiSettings",
]
