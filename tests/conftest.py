"""Shared fixtures: fake embedder, in-memory index, mocked scraper and API client."""

from __future__ import annotations

import json
import math
import re
import zlib
from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from yt_agent.api.dependencies import AppServices
from yt_agent.api.main import create_app
from yt_agent.config import Settings
from yt_agent.ingestion.storage import InMemoryVectorIndex
from yt_agent.scraping.brightdata import BrightDataClient

EMBEDDING_DIMS = 64


class FakeEmbedder:
    """Deterministic bag-of-words embedder (no network)."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * EMBEDDING_DIMS
        for word in re.findall(r"\w+", text.lower()):
            vector[zlib.crc32(word.encode()) % EMBEDDING_DIMS] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        return [v / norm for v in vector] if norm else vector

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]

    async def embed_query(self, text: str) -> list[float]:
        return self._vector(text)


def make_transcript(length: int, word: str = "lorem") -> str:
    """A transcript of exactly *length* characters."""
    return ((word + " ") * (length // (len(word) + 1) + 1))[:length]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        api_url="https://agent.example.com",
        brightdata_api_key="bd-test-key",
        vector_backend="memory",
    )


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def index(embedder: FakeEmbedder) -> InMemoryVectorIndex:
    return InMemoryVectorIndex(embedder)


@pytest.fixture
def brightdata_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def scraper(settings: Settings, brightdata_requests: list[httpx.Request]) -> BrightDataClient:
    def handler(request: httpx.Request) -> httpx.Response:
        brightdata_requests.append(request)
        return httpx.Response(200, content=json.dumps({"snapshot_id": "s_test123"}))

    return BrightDataClient(
        api_key=settings.brightdata_api_key,
        webhook_url=settings.webhook_url,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.fixture
def agent() -> MagicMock:
    mock_agent = MagicMock()
    mock_agent.invoke = AsyncMock(return_value="The video explains Nix flakes.")
    return mock_agent


@pytest.fixture
def services(
    settings: Settings,
    index: InMemoryVectorIndex,
    scraper: BrightDataClient,
    agent: MagicMock,
) -> AppServices:
    return AppServices(settings=settings, index=index, scraper=scraper, agent=agent)


@pytest.fixture
def client(services: AppServices) -> Iterator[TestClient]:
    with TestClient(create_app(services)) as test_client:
        yield test_client
