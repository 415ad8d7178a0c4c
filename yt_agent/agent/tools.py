"""Tools exposed to the Claude agent.

  1. trigger_youtube_video_scrape – starts a Bright Data scrape for a video URL
  2. retrieve                     – returns transcript passages for one video
  3. retrieve_similar_videos      – returns IDs of videos close to a query

Each tool's input is a Pydantic model; its JSON schema is sent to Claude as
``input_schema`` and the model's arguments are validated against it before
the handler runs.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from yt_agent.retrieval.search import (
    RETRIEVE_K,
    SIMILAR_VIDEOS_K,
    retrieve,
    retrieve_similar_videos,
)

if TYPE_CHECKING:
    from yt_agent.ingestion.storage import VectorIndex
    from yt_agent.scraping.brightdata import BrightDataClient

logger = logging.getLogger(__name__)


class TriggerScrapeInput(BaseModel):
    url: str = Field(description="The YouTube video URL to scrape.")


class RetrieveInput(BaseModel):
    query: str
    video_id: str = Field(description="The ID of the video to retrieve.")


class RetrieveSimilarVideosInput(BaseModel):
    query: str


@dataclass(frozen=True)
class Tool:
    """A named, schema-validated async callable the agent may invoke."""

    name: str
    description: str
    input_model: type[BaseModel]
    handler: Callable[[Any], Awaitable[str]]

    def definition(self) -> dict[str, Any]:
        """Tool definition in the shape the Anthropic Messages API expects."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_model.model_json_schema(),
        }

    async def run(self, raw_input: Any) -> str:
        """Validate *raw_input* against the input model and call the handler.

        Raises:
            pydantic.ValidationError: If the arguments do not match the schema.
        """
        args = self.input_model.model_validate(raw_input)
        return await self.handler(args)


def build_tools(
    index: VectorIndex,
    scraper: BrightDataClient,
    retrieve_k: int = RETRIEVE_K,
    similar_videos_k: int = SIMILAR_VIDEOS_K,
) -> list[Tool]:
    """Bind the three retrieval tools to explicit index and scraper handles."""

    async def trigger_scrape(args: TriggerScrapeInput) -> str:
        job = await scraper.trigger_scrape(args.url)
        return job.snapshot_id

    async def retrieve_passages(args: RetrieveInput) -> str:
        return await retrieve(index, args.query, args.video_id, k=retrieve_k)

    async def similar_videos(args: RetrieveSimilarVideosInput) -> str:
        ids = await retrieve_similar_videos(index, args.query, k=similar_videos_k)
        logger.debug("Similar videos for %r: %s", args.query, ids)
        return "\n".join(ids)

    return [
        Tool(
            name="retrieve",
            description=(
                "Retrieve the most relevant chunks of text from the transcript "
                "for a specific YouTube video."
            ),
            input_model=RetrieveInput,
            handler=retrieve_passages,
        ),
        Tool(
            name="trigger_youtube_video_scrape",
            description=(
                "Trigger the scraping of a YouTube video using its URL. "
                "The tool starts a scraping job that usually takes around 7 seconds. "
                "It returns a snapshot/job ID that can be used to check the status "
                "of the scraping job. "
                "Before calling this tool, make sure the video isn't already in the "
                "vector store."
            ),
            input_model=TriggerScrapeInput,
            handler=trigger_scrape,
        ),
        Tool(
            name="retrieve_similar_videos",
            description="Retrieve the IDs of the most similar videos to the query.",
            input_model=RetrieveSimilarVideosInput,
            handler=similar_videos,
        ),
    ]
