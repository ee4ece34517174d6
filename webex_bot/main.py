"""
FastAPI application for the Webex Meeting Bot status and control API.
"""

from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from webex_bot.config import settings
from webex_bot.core.dependencies import get_meeting_bot_instance, set_meeting_bot_instance
from webex_bot.core.logging import get_logger, setup_logging
from webex_bot.api.v1.router import api_router
from webex_bot.api.v1.endpoints import health

logger = get_logger("startup")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Creates and starts the bot unless one was injected, and shuts it down.
    """
    from webex_bot.bot import WebexMeetingBot

    bot = get_meeting_bot_instance()
    if bot is None:
        bot = WebexMeetingBot()
        set_meeting_bot_instance(bot)

    logger.info("Starting Webex Meeting Bot API...")
    if await bot.initialize():
        await bot.start()
        logger.info("✅ Webex Meeting Bot initialized successfully")
    else:
        # Keep serving so /health can report the failure
        logger.error("❌ Failed to initialize bot")

    try:
        yield
    finally:
        logger.info("Shutting down Webex Meeting Bot API...")
        await bot.shutdown()
        set_meeting_bot_instance(None)


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(
        title="Webex Meeting Bot",
        version=settings.version,
        description="Chat bot that detects Webex meeting invitations, transcribes and summarises",
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(api_router, prefix="/api/v1")
    # Uptime probes hit /health without the API prefix
    app.add_api_route("/health", health.health_check, methods=["GET"], include_in_schema=False)

    @app.get("/", tags=["Root"])
    async def root():
        """
        Service banner.
        """
        return {
            "message": "🤖 Webex Meeting Bot is running!",
            "description": "Chat bot with meeting detection capabilities",
            "timestamp": datetime.now(settings.tz_info).isoformat(),
            "capabilities": [
                "Smart chat responses",
                "Meeting invitation detection",
                "Meeting transcripts and summaries",
                "Real-time monitoring",
            ],
        }

    return app


# Setup logging
setup_logging()

app = create_app()
