"""Per-connection state machine for Twilio Media Streams."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol

from integrations.webhook import WebhookClient
from relay.forwarder import DEFAULT_MIN_INTERVAL_SECONDS, DebouncedForwarder
from relay.recognition import RecognitionSession
from speech.recognizer import StreamingRecognizer
from telephony.g711 import ulaw_to_pcm16le

LOGGER = logging.getLogger(__name__)


class CallState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    CLOSED = "closed"


class Connection(Protocol):
    async def close(self) -> None:  # pragma: no cover - protocol stub
        ...


class CallSession:
    """Handles the ``start`` / ``media`` / ``stop`` protocol of one WebSocket.

    Messages must be handed over one at a time, in arrival order.
    """

    def __init__(
        self,
        connection: Connection,
        recognizer_factory: Callable[[], StreamingRecognizer],
        *,
        webhook: WebhookClient | None = None,
        language: str = "en-US",
        debounce_seconds: float = DEFAULT_MIN_INTERVAL_SECONDS,
    ) -> None:
        self.call_id = ""
        self.state = CallState.IDLE
        self.recognition: RecognitionSession | None = None
        self._connection = connection
        self._recognizer_factory = recognizer_factory
        self._language = language
        self.forwarder = DebouncedForwarder(webhook, min_interval=debounce_seconds)

    async def handle_message(self, raw: str | bytes) -> None:
        message = _parse_message(raw)
        if message is None:
            return

        event = message.get("event")
        if event == "start":
            self._on_start(message.get("start"))
        elif event == "media":
            self._on_media(message.get("media"))
        elif event == "stop":
            await self._on_stop()
        else:
            LOGGER.debug("Ignoring stream event %r", event)

    def on_transport_closed(self) -> None:
        """Tear down recognition; safe to call more than once."""

        self.state = CallState.CLOSED
        if self.recognition is not None:
            self.recognition.close()

    def _on_start(self, start: Any) -> None:
        if self.state is not CallState.IDLE:
            LOGGER.debug("Ignoring start in state %s", self.state.value)
            return

        start = start if isinstance(start, dict) else {}
        self.call_id = str(start.get("callSid") or "")
        LOGGER.info(
            "Stream started: call=%s stream=%s format=%s",
            self.call_id,
            start.get("streamSid"),
            start.get("mediaFormat"),
        )

        try:
            recognizer = self._recognizer_factory()
        except Exception:
            LOGGER.exception("Could not build recognizer for call %s", self.call_id)
            recognizer = None

        self.state = CallState.STREAMING
        if recognizer is None:
            return
        self.recognition = RecognitionSession(self.call_id, recognizer, self.forwarder)
        self.recognition.open(self._language)

    def _on_media(self, media: Any) -> None:
        if self.state is not CallState.STREAMING or self.recognition is None:
            return
        if not isinstance(media, dict):
            return
        track = media.get("track")
        if track and track != "inbound":
            return
        payload = media.get("payload")
        if not isinstance(payload, str) or not payload:
            return
        try:
            ulaw = base64.b64decode(payload, validate=True)
        except binascii.Error:
            LOGGER.debug("Discarding media frame with invalid base64 payload")
            return

        self.recognition.feed(ulaw_to_pcm16le(ulaw))

    async def _on_stop(self) -> None:
        if self.state is CallState.CLOSED:
            return
        LOGGER.info("Stream stop received for call %s", self.call_id)
        self.state = CallState.CLOSED
        try:
            await self._connection.close()
        except Exception:
            LOGGER.warning("Closing transport failed for call %s", self.call_id, exc_info=True)


def _parse_message(raw: str | bytes) -> dict[str, Any] | None:
    try:
        message = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(message, dict):
        return None
    return message
