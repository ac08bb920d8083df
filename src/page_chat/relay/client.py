"""Async HTTP client for the page-chat relay."""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from page_chat.exceptions import ProviderError, ValidationError, WebFetchError

logger = logging.getLogger(__name__)

DEFAULT_RELAY_URL = os.environ.get("PAGECHAT_RELAY_URL", "http://localhost:3001")
PING_TIMEOUT = 5.0


class RelayClient:
    """Talk to the relay's provider, ping and fetch-page endpoints.

    No timeout is applied to chat calls; the relay bounds its own upstream
    wait and reports a timeout as an error status.

    Args:
        base_url: Relay root, e.g. ``http://localhost:3001``.
        transport: Optional httpx transport, used to stub the network in tests.
    """

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or DEFAULT_RELAY_URL).rstrip("/")
        self._transport = transport

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=self._transport,
        )

    async def chat(
        self,
        endpoint: str,
        body: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> Any:
        """POST a provider-native request and return the decoded JSON reply.

        Raises:
            ProviderError: On transport failure, a non-2xx status or a non-JSON body.
        """
        try:
            async with self._client() as client:
                response = await client.post(endpoint, json=body, headers=headers)
        except httpx.TimeoutException as e:
            raise ProviderError("Request timed out") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Relay request failed: {e}") from e

        if response.is_error:
            raise ProviderError(
                f"API error: {_error_text(response)}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError("Malformed provider response: body is not JSON") from e

    async def ping(self, provider: str) -> bool:
        """True when the relay holds a credential for ``provider``."""
        try:
            async with self._client(timeout=PING_TIMEOUT) as client:
                response = await client.get(f"/api/{provider}/ping")
        except httpx.HTTPError as e:
            logger.info("Relay ping for %s failed: %s", provider, e)
            return False
        return response.status_code == 200

    async def fetch_page(self, url: str) -> dict[str, Any]:
        """Have the relay fetch and sanitize ``url`` server-side.

        Returns:
            Dict with ``html`` (sanitized markdown), ``title`` and ``originalUrl``.

        Raises:
            ValidationError: If the relay rejected the URL.
            WebFetchError: If the relay could not fetch the page.
        """
        try:
            async with self._client(timeout=30.0) as client:
                response = await client.post("/api/fetch-page", json={"url": url})
        except httpx.HTTPError as e:
            raise WebFetchError(f"Relay unavailable: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.status_code == 400:
            raise ValidationError(str(data.get("error") or "Page URL rejected by relay"))
        if response.is_error or not data.get("success") or not data.get("html"):
            error = data.get("error") or f"Backend error: {response.status_code}"
            raise WebFetchError(str(error))
        return data


def _error_text(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict) and "error" in data:
        error = data["error"]
        if isinstance(error, dict):
            return str(error.get("message") or error)
        return str(error)
    return str(data)
