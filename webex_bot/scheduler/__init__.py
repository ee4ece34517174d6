"""
Message polling scheduler.
"""

from .poll_scheduler import PollScheduler, POLL_JOB_ID, RESUME_JOB_ID, HEARTBEAT_JOB_ID

__all__ = [
    "PollScheduler",
    "POLL_JOB_ID",
    "RESUME_JOB_ID",
    "HEARTBEAT_JOB_ID",
]
