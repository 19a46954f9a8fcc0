"""Streaming speech recognizer contract and its Azure Cognitive Services implementation."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

LOGGER = logging.getLogger(__name__)


class RecognitionEventKind(str, Enum):
    INTERIM = "interim"
    FINAL = "final"
    CANCELED = "canceled"
    STOPPED = "stopped"


@dataclass(frozen=True, slots=True)
class RecognitionEvent:
    kind: RecognitionEventKind
    text: str = ""
    detail: str | None = None


@dataclass(frozen=True, slots=True)
class AudioFormat:
    sample_rate_hz: int = 8000
    bits_per_sample: int = 16
    channels: int = 1


RecognitionEventHandler = Callable[[RecognitionEvent], None]


class StreamingRecognizer(ABC):
    """Interface for push-fed continuous recognizers.

    Implementations must invoke the handler given to :meth:`open` on the asyncio
    event loop that called :meth:`open`.
    """

    @abstractmethod
    def open(
        self,
        on_event: RecognitionEventHandler,
        *,
        language: str,
        audio_format: AudioFormat,
    ) -> None:
        """Allocate the push audio sink and a recognizer bound to it."""

    @abstractmethod
    async def start(self) -> None:
        """Begin continuous recognition."""

    @abstractmethod
    def write(self, pcm: bytes) -> None:
        """Push linear PCM bytes into the audio sink."""

    @abstractmethod
    def close_input(self) -> None:
        """Close the audio sink so the recognizer sees end of stream."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop continuous recognition."""

    @abstractmethod
    def release(self) -> None:
        """Drop the recognizer and any native resources it holds."""


class AzureStreamingRecognizer(StreamingRecognizer):
    """Wrapper around the Azure Cognitive Services Speech SDK push-stream recognizer."""

    def __init__(self, subscription_key: str, region: str) -> None:
        try:
            import azure.cognitiveservices.speech as speechsdk
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError(
                "azure-cognitiveservices-speech is required for AzureStreamingRecognizer."
            ) from exc

        if not subscription_key or not region:
            raise ValueError("Azure speech key and region must be configured.")

        self._speechsdk = speechsdk
        self._subscription_key = subscription_key
        self._region = region
        self._stream = None
        self._recognizer = None

    def open(
        self,
        on_event: RecognitionEventHandler,
        *,
        language: str,
        audio_format: AudioFormat,
    ) -> None:
        speechsdk = self._speechsdk
        loop = asyncio.get_running_loop()

        speech_config = speechsdk.SpeechConfig(
            subscription=self._subscription_key,
            region=self._region,
        )
        speech_config.speech_recognition_language = language

        stream_format = speechsdk.audio.AudioStreamFormat(
            samples_per_second=audio_format.sample_rate_hz,
            bits_per_sample=audio_format.bits_per_sample,
            channels=audio_format.channels,
        )
        self._stream = speechsdk.audio.PushAudioInputStream(stream_format=stream_format)
        audio_config = speechsdk.audio.AudioConfig(stream=self._stream)
        self._recognizer = speechsdk.SpeechRecognizer(
            speech_config=speech_config,
            audio_config=audio_config,
        )

        # SDK callbacks arrive on native worker threads.
        def dispatch(event: RecognitionEvent) -> None:
            if loop.is_closed():
                return
            loop.call_soon_threadsafe(on_event, event)

        self._recognizer.recognizing.connect(
            lambda evt: dispatch(RecognitionEvent(RecognitionEventKind.INTERIM, evt.result.text or ""))
        )
        self._recognizer.recognized.connect(
            lambda evt: dispatch(RecognitionEvent(RecognitionEventKind.FINAL, evt.result.text or ""))
        )
        def on_canceled(evt) -> None:
            details = evt.cancellation_details
            dispatch(
                RecognitionEvent(
                    RecognitionEventKind.CANCELED,
                    detail=details.error_details or str(details.reason),
                )
            )

        self._recognizer.canceled.connect(on_canceled)
        self._recognizer.session_stopped.connect(
            lambda evt: dispatch(RecognitionEvent(RecognitionEventKind.STOPPED))
        )

    async def start(self) -> None:
        if self._recognizer is None:
            raise RuntimeError("Recognizer is not open.")
        future = self._recognizer.start_continuous_recognition_async()
        await asyncio.to_thread(future.get)

    def write(self, pcm: bytes) -> None:
        if self._stream is not None:
            self._stream.write(pcm)

    def close_input(self) -> None:
        if self._stream is not None:
            self._stream.close()

    async def stop(self) -> None:
        if self._recognizer is None:
            return
        future = self._recognizer.stop_continuous_recognition_async()
        await asyncio.to_thread(future.get)

    def release(self) -> None:
        recognizer = self._recognizer
        self._recognizer = None
        self._stream = None
        if recognizer is None:
            return
        for signal in (
            recognizer.recognizing,
            recognizer.recognized,
            recognizer.canceled,
            recognizer.session_stopped,
        ):
            signal.disconnect_all()


def build_azure_recognizer_factory(
    subscription_key: str, region: str
) -> Callable[[], StreamingRecognizer]:
    """Factory producing one fresh recognizer per call."""

    def factory() -> StreamingRecognizer:
        return AzureStreamingRecognizer(subscription_key, region)

    return factory
