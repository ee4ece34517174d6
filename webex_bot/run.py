"""
Entry point for the Webex Meeting Bot.
Serves the status API; the bot itself starts in the app lifespan.
"""

import sys
import uvicorn

from webex_bot.config import settings


def _banner() -> str:
    base = f"http://{settings.api.host}:{settings.api.port}"
    return "\n".join([
        "",
        "=" * 60,
        f"WEBEX MEETING BOT v{settings.version}",
        "=" * 60,
        f"🌐 Listening on {settings.api.host}:{settings.api.port}",
        f"❤️ Health: {base}/health",
        f"📚 API Docs: {base}/api/docs",
        f"⏱️ Polling every {settings.polling.interval_seconds:g}s",
        "=" * 60,
        "",
    ])


def main():
    """Run the bot's API server until interrupted."""
    print(_banner())

    try:
        uvicorn.run(
            "webex_bot.main:app",
            host=settings.api.host,
            port=settings.api.port,
            reload=settings.debug,
            log_level=settings.log_level.lower(),
        )
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except Exception as e:
        print(f"\n❌ Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
