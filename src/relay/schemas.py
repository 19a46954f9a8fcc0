"""Pydantic schemas exchanged between the relay and its collaborators."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TranscriptEvent(BaseModel):
    """A finalized recognition result for one call."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    call_id: str = Field(alias="callId")
    text: str
    timestamp: datetime = Field(default_factory=utcnow)

    def to_payload(self) -> dict[str, str]:
        """Webhook body: ``{"callId", "text", "timestamp"}`` with an ISO-8601 timestamp."""

        return {
            "callId": self.call_id,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }
