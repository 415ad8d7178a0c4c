"""Service handles shared by the API routes.

Handles are built once at startup from :class:`Settings` and attached to
``app.state``; routes receive them through FastAPI dependencies, so tests can
inject their own instances.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from openai import AsyncOpenAI

from yt_agent.agent.runner import Agent, build_agent
from yt_agent.config import Settings
from yt_agent.ingestion.embeddings import OpenAIEmbedder
from yt_agent.ingestion.storage import VectorIndex, create_vector_index
from yt_agent.scraping.brightdata import BrightDataClient


@dataclass
class AppServices:
    settings: Settings
    index: VectorIndex
    scraper: BrightDataClient
    agent: Agent
    embedder: OpenAIEmbedder | None = None

    async def aclose(self) -> None:
        """Release every network client built at startup."""
        await self.scraper.aclose()
        await self.index.aclose()
        if self.embedder is not None:
            await self.embedder.aclose()
        await self.agent.aclose()


async def build_services(settings: Settings) -> AppServices:
    """Construct the embedder, vector index, scraper and agent from *settings*."""
    embedder = OpenAIEmbedder(
        client=AsyncOpenAI(api_key=settings.openai_api_key or None),
        model=settings.embedding_model,
    )
    index = await create_vector_index(settings, embedder)
    scraper = BrightDataClient(
        api_key=settings.brightdata_api_key,
        webhook_url=settings.webhook_url,
        dataset_id=settings.brightdata_dataset_id,
        trigger_url=settings.brightdata_trigger_url,
    )
    agent = build_agent(settings, index, scraper)
    return AppServices(
        settings=settings,
        index=index,
        scraper=scraper,
        agent=agent,
        embedder=embedder,
    )


def get_services(request: Request) -> AppServices:
    services: AppServices = request.app.state.services
    return services


Services = Annotated[AppServices, Depends(get_services)]
