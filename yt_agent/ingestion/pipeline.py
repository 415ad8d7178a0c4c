"""Webhook-driven ingestion: chunk -> embed -> store, one batch per video."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from yt_agent.errors import IngestionError
from yt_agent.ingestion.chunking import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    chunk_transcript,
)
from yt_agent.ingestion.models import IngestionOutcome, WebhookVideo

if TYPE_CHECKING:
    from yt_agent.ingestion.storage import VectorIndex

logger = logging.getLogger(__name__)


async def ingest(
    index: VectorIndex,
    video_id: str,
    transcript: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> IngestionOutcome:
    """Split a transcript into overlapping windows and store them for *video_id*.

    Every chunk is written in one batch. Failures are logged and returned in
    the outcome, never raised. No check is made for chunks already stored
    under *video_id*, so ingesting the same video twice duplicates it.

    Args:
        index: Vector index receiving the chunks.
        video_id: YouTube video ID recorded in each chunk's metadata.
        transcript: Raw transcript text.
        chunk_size: Window length in characters.
        chunk_overlap: Characters shared by consecutive windows.

    Returns:
        An :class:`IngestionOutcome` with the stored chunk count or the error.
    """
    logger.info("Adding video to vector store: %s", video_id)
    try:
        chunks = chunk_transcript(video_id, transcript, chunk_size, chunk_overlap)
        stored = await index.add_chunks(chunks)
    except Exception as exc:
        logger.exception("Error adding video %s to vector store", video_id)
        return IngestionOutcome(video_id=video_id, error=IngestionError(video_id, str(exc)))

    logger.info("Stored %d chunks for video %s", stored, video_id)
    return IngestionOutcome(video_id=video_id, chunk_count=stored)


async def _ingest_item(
    index: VectorIndex,
    item: Any,
    chunk_size: int,
    chunk_overlap: int,
) -> IngestionOutcome:
    try:
        video = WebhookVideo.model_validate(item)
    except ValidationError as exc:
        video_id = item.get("video_id") if isinstance(item, dict) else None
        if not isinstance(video_id, str):
            video_id = None
        logger.error("Skipping malformed webhook item (video_id=%s): %s", video_id, exc)
        return IngestionOutcome(video_id=video_id, error=IngestionError(video_id, str(exc)))

    return await ingest(index, video.video_id, video.transcript, chunk_size, chunk_overlap)


async def ingest_batch(
    index: VectorIndex,
    items: Iterable[Any],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[IngestionOutcome]:
    """Ingest every video delivered by one webhook call, concurrently.

    Malformed items produce a failed outcome; they do not stop the batch.
    Outcomes are returned in the order of *items*.
    """
    outcomes = await asyncio.gather(
        *(_ingest_item(index, item, chunk_size, chunk_overlap) for item in items)
    )
    failed = sum(1 for o in outcomes if not o.ok)
    if failed:
        logger.warning("Webhook batch finished with %d/%d failed videos", failed, len(outcomes))
    return list(outcomes)
