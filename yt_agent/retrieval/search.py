"""Retrieval over indexed transcripts: per-video passages and similar videos."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from yt_agent.ingestion.storage import VectorIndex

RETRIEVE_K = 3
SIMILAR_VIDEOS_K = 30


async def retrieve(
    index: VectorIndex,
    query: str,
    video_id: str,
    k: int = RETRIEVE_K,
) -> str:
    """Return the transcript passages of one video that best match *query*.

    Only chunks whose ``video_id`` metadata equals *video_id* are considered.

    Args:
        index: Vector index to search.
        query: Natural-language question or phrase.
        video_id: YouTube video ID (11-char canonical form).
        k: Maximum number of passages.

    Returns:
        The passages' text joined by newlines, closest first; an empty string
        when the video has no matching chunks.
    """
    chunks = await index.similarity_search(query, k, filter={"video_id": video_id})
    return "\n".join(chunk.text for chunk in chunks if chunk.video_id == video_id)


async def retrieve_similar_videos(
    index: VectorIndex,
    query: str,
    k: int = SIMILAR_VIDEOS_K,
) -> list[str]:
    """Return the video IDs of the chunks most similar to *query*.

    IDs are ordered by chunk similarity and may repeat when several chunks of
    the same video match.
    """
    chunks = await index.similarity_search(query, k)
    return [chunk.video_id for chunk in chunks]
