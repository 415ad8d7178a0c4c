"""Data models for the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

from yt_agent.errors import IngestionError


class WebhookVideo(BaseModel):
    """One scraped video as delivered by the Bright Data webhook."""

    video_id: str = Field(min_length=1)
    transcript: str


@dataclass(frozen=True)
class TranscriptChunk:
    """One overlapping window of a video transcript, tagged with its source video."""

    text: str
    video_id: str
    chunk_index: int = 0

    @property
    def metadata(self) -> dict[str, Any]:
        """Metadata stored alongside the chunk's content and vector."""
        return {"video_id": self.video_id, "chunk_index": self.chunk_index}

    @classmethod
    def from_record(cls, content: str, metadata: dict[str, Any]) -> TranscriptChunk:
        """Rebuild a chunk from a stored ``(content, metadata)`` row."""
        return cls(
            text=content,
            video_id=str(metadata.get("video_id", "")),
            chunk_index=int(metadata.get("chunk_index", 0)),
        )


@dataclass
class IngestionOutcome:
    """Result of ingesting a single video.

    Failures are recorded here instead of being raised so the webhook can
    keep processing the rest of its batch.
    """

    video_id: str | None
    chunk_count: int = 0
    error: IngestionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
