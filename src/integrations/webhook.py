"""HTTP client for the downstream automation webhook (n8n)."""

from __future__ import annotations

import logging

import httpx

from relay.errors import ConfigurationError, WebhookDeliveryError
from relay.schemas import TranscriptEvent

LOGGER = logging.getLogger(__name__)


class WebhookClient:
    """Posts finalized transcripts as JSON to a single endpoint."""

    def __init__(
        self,
        endpoint: str,
        *,
        api_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("Webhook endpoint is not configured.")
        try:
            url = httpx.URL(endpoint)
        except httpx.InvalidURL as exc:
            raise ConfigurationError(f"Invalid webhook URL {endpoint!r}: {exc}") from exc
        if url.scheme not in ("http", "https"):
            raise ConfigurationError(f"Webhook URL must be http(s): {endpoint!r}")
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def post_transcript(self, event: TranscriptEvent) -> None:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self._endpoint,
                    json=event.to_payload(),
                    headers=headers,
                )
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise WebhookDeliveryError(f"POST {self._endpoint} failed: {exc}") from exc

        LOGGER.debug("Forwarded transcript for call %s (%s)", event.call_id, response.status_code)
