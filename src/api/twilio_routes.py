"""Twilio Voice integration.

This module provides:
- Voice webhook (TwiML) that greets the caller and starts an inbound Media Stream.
- The Media Stream WebSocket, relaying call audio to speech recognition.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from xml.sax.saxutils import escape

from fastapi import APIRouter, Depends, Request, Response, WebSocket

from api.dependencies import get_app_settings, get_recognizer_factory, get_webhook_client
from config.settings import Settings
from integrations.webhook import WebhookClient
from relay.call_session import CallSession, CallState
from speech.recognizer import StreamingRecognizer

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["twilio"])

STREAM_PATH = "/twilio"


def _twiml_response(xml: str) -> Response:
    return Response(content=xml, media_type="text/xml")


def _twiml_stream(*, say_text: str, voice: str, stream_url: str, pause_seconds: int) -> str:
    say = escape(say_text)
    stream = escape(stream_url, {'"': "&quot;"})
    voice_attr = escape(voice, {'"': "&quot;"})
    pause = max(1, int(pause_seconds))
    return (
        "<?xml version=\"1.0\" encoding=\"UTF-8\"?>"
        "<Response>"
        f"<Say voice=\"{voice_attr}\">{say}</Say>"
        "<Start>"
        f"<Stream url=\"{stream}\" track=\"inbound_track\" />"
        "</Start>"
        f"<Pause length=\"{pause}\" />"
        "</Response>"
    )


def _stream_url(request: Request) -> str:
    host = request.headers.get("host") or request.url.netloc
    return f"wss://{host}{STREAM_PATH}"


@router.post("/voice")
async def twilio_voice_webhook(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> Response:
    form = await request.form()
    LOGGER.info("Twilio voice webhook: CallSid=%s From=%s", form.get("CallSid"), form.get("From"))

    twiml = _twiml_stream(
        say_text=settings.greeting_text,
        voice=settings.greeting_voice,
        stream_url=_stream_url(request),
        pause_seconds=settings.stream_pause_seconds,
    )
    LOGGER.debug("Generated TwiML: %s", twiml)
    return _twiml_response(twiml)


@router.websocket(STREAM_PATH)
async def twilio_media_stream(
    websocket: WebSocket,
    settings: Settings = Depends(get_app_settings),
    recognizer_factory: Callable[[], StreamingRecognizer] = Depends(get_recognizer_factory),
    webhook: WebhookClient | None = Depends(get_webhook_client),
) -> None:
    await websocket.accept()
    LOGGER.info("Twilio WebSocket connected")

    session = CallSession(
        websocket,
        recognizer_factory,
        webhook=webhook,
        language=settings.speech_language,
        debounce_seconds=settings.transcript_debounce_seconds,
    )
    try:
        while session.state is not CallState.CLOSED:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await session.handle_message(raw)
    finally:
        session.on_transport_closed()
        LOGGER.info("Twilio WebSocket closed (call=%s)", session.call_id)
