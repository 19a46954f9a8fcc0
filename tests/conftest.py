from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from speech.recognizer import RecognitionEvent, StreamingRecognizer  # noqa: E402


class FakeRecognizer(StreamingRecognizer):
    """In-memory stand-in for the Azure recognizer."""

    def __init__(self, *, fail_open: bool = False, fail_start: bool = False, fail_stop: bool = False) -> None:
        self.fail_open = fail_open
        self.fail_start = fail_start
        self.fail_stop = fail_stop
        self.on_event = None
        self.language: str | None = None
        self.audio_format = None
        self.open_calls = 0
        self.start_calls = 0
        self.stop_calls = 0
        self.close_input_calls = 0
        self.release_calls = 0
        self.writes: list[bytes] = []

    def open(self, on_event, *, language, audio_format) -> None:
        self.open_calls += 1
        if self.fail_open:
            raise RuntimeError("invalid subscription key")
        self.on_event = on_event
        self.language = language
        self.audio_format = audio_format

    async def start(self) -> None:
        self.start_calls += 1
        if self.fail_start:
            raise RuntimeError("authentication failed")

    def write(self, pcm: bytes) -> None:
        self.writes.append(pcm)

    def close_input(self) -> None:
        self.close_input_calls += 1

    async def stop(self) -> None:
        self.stop_calls += 1
        if self.fail_stop:
            raise RuntimeError("stop failed")

    def release(self) -> None:
        self.release_calls += 1

    def emit(self, event: RecognitionEvent) -> None:
        assert self.on_event is not None
        self.on_event(event)


class FakeWebhook:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.events = []

    async def post_transcript(self, event) -> None:
        self.events.append(event)
        if self.error is not None:
            raise self.error


class FakeConnection:
    def __init__(self) -> None:
        self.close_calls = 0

    async def close(self) -> None:
        self.close_calls += 1


@pytest.fixture(scope="session")
def app():
    os.environ["AZURE_SPEECH_KEY"] = "test-key"
    os.environ["AZURE_SPEECH_REGION"] = "westeurope"
    os.environ.pop("N8N_WEBHOOK_URL", None)
    os.environ.pop("N8N_WEBHOOK", None)

    import importlib

    # Ensure clean import with the test settings.
    for module_name in ["config.settings", "api.dependencies", "api.twilio_routes", "main"]:
        sys.modules.pop(module_name, None)

    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def recognizers() -> list[FakeRecognizer]:
    return []


@pytest.fixture()
def client(app, recognizers):
    # Override engine dependency so tests never reach Azure.
    import api.dependencies as deps

    def factory() -> FakeRecognizer:
        recognizer = FakeRecognizer()
        recognizers.append(recognizer)
        return recognizer

    app.dependency_overrides[deps.get_recognizer_factory] = lambda: factory
    app.dependency_overrides[deps.get_webhook_client] = lambda: None

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
