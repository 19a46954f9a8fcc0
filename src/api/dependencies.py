"""Shared FastAPI dependencies.

Settings travel on ``app.state`` so every component receives the same
instance explicitly instead of reading ambient globals.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends
from starlette.requests import HTTPConnection

from config.settings import Settings
from integrations.webhook import WebhookClient
from speech.recognizer import StreamingRecognizer, build_azure_recognizer_factory


def get_app_settings(connection: HTTPConnection) -> Settings:
    return connection.app.state.settings


def get_recognizer_factory(
    settings: Settings = Depends(get_app_settings),
) -> Callable[[], StreamingRecognizer]:
    return build_azure_recognizer_factory(
        settings.azure_speech_key or "",
        settings.azure_speech_region or "",
    )


def get_webhook_client(settings: Settings = Depends(get_app_settings)) -> WebhookClient | None:
    if not settings.n8n_webhook_url:
        return None
    return WebhookClient(
        settings.n8n_webhook_url,
        api_key=settings.n8n_webhook_token,
        timeout=settings.webhook_timeout_seconds,
    )
