"""Fixed-size, overlapping character windows over a raw transcript."""

from __future__ import annotations

from yt_agent.ingestion.models import TranscriptChunk

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200


def split_transcript(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[str]:
    """Split *text* into windows of *chunk_size* characters.

    Consecutive windows share exactly *overlap* characters. The final window
    may be shorter; windowing stops once a window reaches the end of the text,
    so the tail is never emitted twice.

    For ``len(text) > chunk_size`` this yields
    ``ceil((len(text) - overlap) / (chunk_size - overlap))`` windows; an empty
    string yields none.

    Args:
        text: Raw transcript text.
        chunk_size: Maximum window length in characters.
        overlap: Characters shared between consecutive windows.

    Returns:
        The windows in original character order.

    Raises:
        ValueError: If the size/overlap combination cannot make progress.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError(f"overlap must be in [0, {chunk_size}), got {overlap}")

    stride = chunk_size - overlap
    windows: list[str] = []
    start = 0

    while start < len(text):
        end = min(start + chunk_size, len(text))
        windows.append(text[start:end])
        if end == len(text):
            break
        start += stride

    return windows


def chunk_transcript(
    video_id: str,
    transcript: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[TranscriptChunk]:
    """Split a transcript and tag every window with *video_id*."""
    return [
        TranscriptChunk(text=window, video_id=video_id, chunk_index=idx)
        for idx, window in enumerate(split_transcript(transcript, chunk_size, overlap))
    ]
