"""Per-call debounced forwarding of final transcripts to the automation webhook."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from integrations.webhook import WebhookClient
from relay.errors import WebhookDeliveryError
from relay.schemas import TranscriptEvent

LOGGER = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL_SECONDS = 2.0


class DebouncedForwarder:
    """Drops transcripts that follow an accepted one too closely.

    Dropped events are never queued or retried. Accepted events are delivered
    in a background task; the caller is never blocked on the network.
    """

    def __init__(
        self,
        webhook: WebhookClient | None,
        *,
        min_interval: float = DEFAULT_MIN_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._webhook = webhook
        self._min_interval = min_interval
        self._clock = clock
        self._last_sent: float | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def last_sent(self) -> float | None:
        return self._last_sent

    def submit(self, event: TranscriptEvent) -> bool:
        """Accept or drop ``event``; returns whether it was accepted."""

        now = self._clock()
        if self._last_sent is not None and now - self._last_sent < self._min_interval:
            LOGGER.info(
                "Debouncing transcript for call %s (%.0f ms since last send)",
                event.call_id,
                (now - self._last_sent) * 1000,
            )
            return False

        # Claimed before the request completes so a burst cannot slip through.
        self._last_sent = now

        if self._webhook is None:
            LOGGER.debug("No webhook configured; transcript for call %s not sent", event.call_id)
            return True

        task = asyncio.get_running_loop().create_task(self._deliver(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return True

    async def drain(self) -> None:
        """Wait for in-flight deliveries."""

        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _deliver(self, event: TranscriptEvent) -> None:
        try:
            await self._webhook.post_transcript(event)
        except WebhookDeliveryError as exc:
            LOGGER.error("Error posting transcript for call %s: %s", event.call_id, exc.detail)
        except Exception:
            LOGGER.exception("Unexpected error posting transcript for call %s", event.call_id)
