"""Exception taxonomy shared by the scraping, ingestion, retrieval and agent layers."""

from __future__ import annotations


class YtAgentError(Exception):
    """Base class for errors raised by this package."""


class ExternalServiceError(YtAgentError):
    """A call to Bright Data, OpenAI, Anthropic or Supabase failed.

    Raised from caller-facing operations (trigger, retrieve, agent turns) and
    never retried locally.
    """

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message


class IngestionError(YtAgentError):
    """Chunking, embedding or storage failed for one webhook-delivered video.

    Only ever logged and attached to an ``IngestionOutcome``; the webhook
    caller never sees it.
    """

    def __init__(self, video_id: str | None, message: str) -> None:
        super().__init__(f"{video_id or '<unknown>'}: {message}")
        self.video_id = video_id
        self.message = message
