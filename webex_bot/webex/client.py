"""
Webex REST API client.
Implements the message source over httpx with bounded timeouts.
"""

from typing import Any, Dict, List, Optional

import httpx

from webex_bot.config import settings, WebexSettings
from webex_bot.core.exceptions import (
    ConfigurationError,
    MessageSourceError,
    PermissionDeniedError,
    RateLimitedError,
    TransientSourceError,
)
from webex_bot.core.logging import get_logger
from webex_bot.domain.models import BotIdentity, Message
from .base import MessageSourceBase

logger = get_logger("webex")


def _parse_retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class WebexClient(MessageSourceBase):
    """
    Thin async wrapper over the Webex messages, people and rooms APIs.

    HTTP failures are translated into the bot's error taxonomy so callers
    never see httpx exceptions.
    """

    def __init__(
        self,
        config: Optional[WebexSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._settings = config or settings.webex
        self.http_client = httpx.AsyncClient(
            base_url=self._settings.base_url,
            headers={
                "Authorization": f"Bearer {self._settings.access_token}",
                "Content-Type": "application/json"
            },
            timeout=self._settings.request_timeout_seconds,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        timeout: Optional[float] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Send a request and map failures to MessageSourceError subclasses.
        """
        try:
            response = await self.http_client.request(
                method,
                path,
                timeout=timeout or self._settings.request_timeout_seconds,
                **kwargs
            )
        except httpx.TimeoutException as e:
            raise TransientSourceError(f"timeout calling {method} {path}", {"error": str(e)}) from e
        except httpx.HTTPError as e:
            raise TransientSourceError(f"network error calling {method} {path}: {e}") from e

        if response.status_code == 429:
            raise RateLimitedError(
                f"rate limited on {method} {path}",
                retry_after=_parse_retry_after(response),
                details={"status": 429},
            )
        if response.status_code in (400, 401, 403):
            raise PermissionDeniedError(
                f"{response.status_code} on {method} {path}",
                {"status": response.status_code, "body": response.text[:200]},
            )
        if response.status_code >= 500:
            raise TransientSourceError(
                f"{response.status_code} on {method} {path}",
                {"status": response.status_code},
            )
        if response.status_code >= 400:
            raise MessageSourceError(
                f"{response.status_code} on {method} {path}",
                {"status": response.status_code},
            )

        if not response.content:
            return {}
        return response.json()

    async def get_current_identity(self) -> BotIdentity:
        if not self._settings.access_token:
            raise ConfigurationError("WEBEX_ACCESS_TOKEN is not set")
        data = await self._request("GET", "/people/me")
        identity = BotIdentity.from_api(data)
        logger.info(f"Authenticated as {identity.display_name} ({identity.email})")
        return identity

    async def fetch_recent_messages(
        self,
        max_messages: int = 20,
        room_id: Optional[str] = None
    ) -> List[Message]:
        params: Dict[str, Any] = {"max": max_messages}
        if room_id:
            params["roomId"] = room_id

        data = await self._request(
            "GET",
            "/messages",
            params=params,
            timeout=self._settings.fetch_timeout_seconds,
        )
        messages = []
        for item in data.get("items", []):
            try:
                messages.append(Message.from_api(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed message item: {e!r}")
        return messages

    async def post_message(self, room_id: str, text: str) -> None:
        await self._request(
            "POST",
            "/messages",
            json={"roomId": room_id, "markdown": text},
        )

    async def get_conversation_metadata(self, room_id: str) -> Dict[str, Any]:
        data = await self._request("GET", f"/rooms/{room_id}/meetingInfo")
        return {
            "meetingId": data.get("meetingNumber") or data.get("meetingId"),
            "meetingLink": data.get("meetingLink"),
        }

    async def close(self) -> None:
        await self.http_client.aclose()
