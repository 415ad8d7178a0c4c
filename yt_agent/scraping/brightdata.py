"""Bright Data dataset trigger for YouTube video scrapes.

Starting a scrape is fire-and-forget: the trigger call returns a snapshot ID
and Bright Data later POSTs the scraped videos (including transcripts) to our
``/webhook`` endpoint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from yt_agent.errors import ExternalServiceError

logger = logging.getLogger(__name__)

DEFAULT_TRIGGER_URL = "https://api.brightdata.com/datasets/v3/trigger"
YOUTUBE_DATASET_ID = "gd_lk56epmy2i5g7lzu0k"


@dataclass(frozen=True)
class ScrapeJob:
    """Handle for a started Bright Data snapshot."""

    snapshot_id: str
    url: str


class BrightDataClient:
    """Thin async client for the Bright Data dataset trigger endpoint."""

    def __init__(
        self,
        api_key: str,
        webhook_url: str,
        dataset_id: str = YOUTUBE_DATASET_ID,
        trigger_url: str = DEFAULT_TRIGGER_URL,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.webhook_url = webhook_url
        self.dataset_id = dataset_id
        self.trigger_url = trigger_url
        self.http_client = http_client or httpx.AsyncClient()

    def _params(self) -> dict[str, str]:
        return {
            "dataset_id": self.dataset_id,
            "endpoint": self.webhook_url,
            "format": "json",
            "uncompressed_webhook": "true",
            "include_errors": "true",
        }

    async def trigger_scrape(self, url: str) -> ScrapeJob:
        """Start a scrape of the YouTube video at *url*.

        The URL is not validated locally; Bright Data rejects bad URLs when the
        job starts. The job usually completes in about 7 seconds but this call
        does not wait for it. Callers must make sure the video is not already
        indexed.

        Args:
            url: YouTube video URL.

        Returns:
            The started :class:`ScrapeJob`.

        Raises:
            ExternalServiceError: On network failure, a non-2xx response, or a
                response body without a ``snapshot_id``.
        """
        logger.info("Triggering YouTube video scrape: %s", url)
        try:
            response = await self.http_client.post(
                self.trigger_url,
                params=self._params(),
                json=[{"url": url, "country": ""}],
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                "brightdata",
                f"trigger returned HTTP {exc.response.status_code}",
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceError("brightdata", f"trigger request failed: {exc}") from exc

        snapshot_id = _parse_snapshot_id(response)
        logger.info("YouTube video scrape triggered: %s", snapshot_id)
        return ScrapeJob(snapshot_id=snapshot_id, url=url)

    async def aclose(self) -> None:
        await self.http_client.aclose()


def _parse_snapshot_id(response: httpx.Response) -> str:
    try:
        body: Any = response.json()
    except ValueError as exc:
        raise ExternalServiceError("brightdata", "trigger response is not valid JSON") from exc

    snapshot_id = body.get("snapshot_id") if isinstance(body, dict) else None
    if not isinstance(snapshot_id, str) or not snapshot_id:
        raise ExternalServiceError("brightdata", f"trigger response has no snapshot_id: {body!r}")
    return snapshot_id
