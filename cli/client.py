"""HTTP client for the SupportChat chat API.

Every call returns an event dict (``reply``, ``history`` or ``error``)
rather than raising, so the interactive loop can render all outcomes
the same way.
"""

import logging
from typing import Any

import httpx

from .config import CLIConfig

logger = logging.getLogger(__name__)


def _error_event(message: str, code: str) -> dict[str, Any]:
    return {"type": "error", "message": message, "code": code}


def _http_error_event(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
        detail = body.get("message") or body.get("error") or response.text
    except ValueError:
        detail = response.text
    return _error_event(f"HTTP {response.status_code}: {detail}", "HTTP_ERROR")


class ChatAPIClient:
    """Client for the ``/chat`` endpoints."""

    def __init__(
        self, config: CLIConfig, transport: httpx.AsyncBaseTransport | None = None
    ):
        self.config = config
        self.client = httpx.AsyncClient(timeout=config.timeout, transport=transport)

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s %s %s", method, url, kwargs.get("json", ""))
        response = await self.client.request(method, url, **kwargs)
        logger.debug("Response status: %s", response.status_code)
        return response

    async def send_message(
        self, message: str, session_id: str | None = None
    ) -> dict[str, Any]:
        """Post a message; returns a ``reply`` event carrying ``sessionId``."""
        payload: dict[str, Any] = {"message": message}
        if session_id:
            payload["sessionId"] = session_id
        try:
            response = await self._request(
                "POST", self.config.message_url, json=payload
            )
            if response.status_code != 200:
                return _http_error_event(response)
            body = response.json()
            return {
                "type": "reply",
                "reply": body["reply"],
                "session_id": body["sessionId"],
            }
        except httpx.TimeoutException:
            return _error_event("Request timed out.", "TIMEOUT")
        except httpx.ConnectError as e:
            return _error_event(f"Connection error: {e}", "CONNECTION_ERROR")
        except Exception as e:
            logger.exception("Unexpected error during API request")
            return _error_event(f"Unexpected error: {e}", "UNEXPECTED_ERROR")

    async def get_history(self, session_id: str) -> dict[str, Any]:
        """Fetch a transcript; returns a ``history`` event."""
        try:
            response = await self._request("GET", self.config.history_url(session_id))
            if response.status_code != 200:
                return _http_error_event(response)
            body = response.json()
            return {
                "type": "history",
                "session_id": body["sessionId"],
                "messages": body["messages"],
            }
        except httpx.TimeoutException:
            return _error_event("Request timed out.", "TIMEOUT")
        except httpx.ConnectError as e:
            return _error_event(f"Connection error: {e}", "CONNECTION_ERROR")
        except Exception as e:
            logger.exception("Unexpected error during API request")
            return _error_event(f"Unexpected error: {e}", "UNEXPECTED_ERROR")

    async def close(self) -> None:
        await self.client.aclose()
