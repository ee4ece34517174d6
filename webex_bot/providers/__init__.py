"""
Join and transcription capabilities.
"""

from .base import JoinProvider, TranscriptionProvider
from .simulated import SimulatedJoinProvider, ScriptedTranscriptionProvider, DEFAULT_SCRIPT

__all__ = [
    "JoinProvider",
    "TranscriptionProvider",
    "SimulatedJoinProvider",
    "ScriptedTranscriptionProvider",
    "DEFAULT_SCRIPT",
]
