"""Bright Data webhook: ingest scraped video transcripts."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body
from fastapi.responses import PlainTextResponse

from yt_agent.api.dependencies import Services
from yt_agent.ingestion.pipeline import ingest_batch

router = APIRouter()


@router.post("/webhook", response_class=PlainTextResponse)
async def webhook(
    services: Services,
    videos: list[Any] = Body(...),
) -> str:
    """Ingest every video in the delivered batch.

    Always answers ``OK``; per-video failures are only logged by the pipeline.
    """
    await ingest_batch(
        services.index,
        videos,
        chunk_size=services.settings.chunk_size,
        chunk_overlap=services.settings.chunk_overlap,
    )
    return "OK"
