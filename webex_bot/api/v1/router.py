"""
API v1 router aggregation.
"""

from fastapi import APIRouter
from webex_bot.api.v1.endpoints import health, meetings

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(meetings.router, prefix="/meetings", tags=["Meetings"])
api_router.include_router(health.router, tags=["Health"])

__all__ = ["api_router"]
