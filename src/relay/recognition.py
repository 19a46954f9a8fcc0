"""One streaming recognition engagement per call."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from relay.forwarder import DebouncedForwarder
from relay.schemas import TranscriptEvent, utcnow
from speech.recognizer import AudioFormat, RecognitionEvent, RecognitionEventKind, StreamingRecognizer

LOGGER = logging.getLogger(__name__)


class RecognitionSession:
    """Conduit between decoded call audio and a streaming recognizer.

    Owns its recognizer exclusively. ``feed`` before ``open`` or after ``close``
    is a silent no-op; engine failures are logged and leave the session in a
    non-recognizing state instead of failing the call.
    """

    def __init__(
        self,
        call_id: str,
        recognizer: StreamingRecognizer,
        forwarder: DebouncedForwarder,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.call_id = call_id
        self._recognizer = recognizer
        self._forwarder = forwarder
        self._clock = clock
        self._opened = False
        self._closed = False
        self._start_task: asyncio.Task | None = None
        self._teardown_task: asyncio.Task | None = None

    @property
    def is_open(self) -> bool:
        return self._opened and not self._closed

    def open(
        self,
        language: str,
        *,
        sample_rate_hz: int = 8000,
        bits_per_sample: int = 16,
        channels: int = 1,
    ) -> None:
        if self._opened or self._closed:
            return

        audio_format = AudioFormat(
            sample_rate_hz=sample_rate_hz,
            bits_per_sample=bits_per_sample,
            channels=channels,
        )
        try:
            self._recognizer.open(self._handle_event, language=language, audio_format=audio_format)
        except Exception:
            LOGGER.exception("Failed to create recognizer for call %s", self.call_id)
            return

        self._opened = True
        self._start_task = asyncio.get_running_loop().create_task(self._start())

    def feed(self, pcm: bytes) -> None:
        if not self.is_open:
            return
        try:
            self._recognizer.write(pcm)
        except Exception:
            LOGGER.exception("Failed to push audio for call %s", self.call_id)

    def close(self) -> asyncio.Task | None:
        """Close the audio sink now and stop/release the recognizer in the background.

        Safe to call repeatedly; later calls return the first call's teardown task.
        """

        if self._closed:
            return self._teardown_task
        self._closed = True
        if not self._opened:
            return None

        try:
            self._recognizer.close_input()
        except Exception:
            LOGGER.warning("Closing audio input failed for call %s", self.call_id, exc_info=True)

        self._teardown_task = asyncio.get_running_loop().create_task(self._teardown())
        return self._teardown_task

    async def _start(self) -> None:
        try:
            await self._recognizer.start()
        except Exception:
            LOGGER.exception("Recognizer start error for call %s", self.call_id)
            return
        LOGGER.info("Recognizer started for call %s", self.call_id)

    async def _teardown(self) -> None:
        if self._start_task is not None:
            await self._start_task
        try:
            await self._recognizer.stop()
        except Exception:
            LOGGER.warning("Stopping recognizer failed for call %s", self.call_id, exc_info=True)
        finally:
            try:
                self._recognizer.release()
            except Exception:
                LOGGER.warning("Releasing recognizer failed for call %s", self.call_id, exc_info=True)
        LOGGER.info("Recognizer released for call %s", self.call_id)

    def _handle_event(self, event: RecognitionEvent) -> None:
        if event.kind is RecognitionEventKind.INTERIM:
            # Interim text may still change; forwarding it would trigger duplicate actions.
            if event.text:
                LOGGER.debug("[STT:interim] %s: %s", self.call_id, event.text)
        elif event.kind is RecognitionEventKind.FINAL:
            if not event.text:
                return
            LOGGER.info("[STT:final] %s: %s", self.call_id, event.text)
            self._forwarder.submit(
                TranscriptEvent(call_id=self.call_id, text=event.text, timestamp=self._clock())
            )
        elif event.kind is RecognitionEventKind.CANCELED:
            LOGGER.warning("Recognizer canceled for call %s: %s", self.call_id, event.detail)
        elif event.kind is RecognitionEventKind.STOPPED:
            LOGGER.info("Recognizer session stopped for call %s", self.call_id)
