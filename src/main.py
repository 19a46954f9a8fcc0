"""Entry point for the Twilio media stream to speech recognition relay."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from api.routes import router as ops_router
from api.twilio_routes import router as twilio_router
from config.settings import Settings, get_settings
from integrations.webhook import WebhookClient
from relay.errors import ConfigurationError

LOGGER = logging.getLogger(__name__)


def validate_settings(settings: Settings) -> None:
    """Raise ConfigurationError for settings the relay cannot run with."""

    settings.require_speech_credentials()
    if settings.n8n_webhook_url:
        WebhookClient(settings.n8n_webhook_url)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Refuse to serve calls that could never be transcribed.
        validate_settings(settings)
        if not settings.n8n_webhook_url:
            LOGGER.warning("N8N_WEBHOOK_URL is not set; final transcripts will not be forwarded.")
        LOGGER.info("WS relay ready (language=%s)", settings.speech_language)
        yield

    app = FastAPI(
        title="Twilio STT Relay",
        description="Relays Twilio Media Streams to streaming speech recognition.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.include_router(ops_router)
    app.include_router(twilio_router)
    return app


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = create_app(settings)


def run() -> None:
    try:
        validate_settings(settings)
    except ConfigurationError as exc:
        LOGGER.critical("%s", exc.detail)
        raise SystemExit(1) from exc

    LOGGER.info("WS relay listening on %s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
