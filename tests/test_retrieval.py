"""Tests for per-video retrieval and similar-video lookup."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import OpenAIError

from yt_agent.errors import ExternalServiceError
from yt_agent.ingestion.embeddings import OpenAIEmbedder
from yt_agent.ingestion.models import TranscriptChunk
from yt_agent.ingestion.storage import InMemoryVectorIndex
from yt_agent.retrieval.search import retrieve, retrieve_similar_videos


class TestRetrieve:
    @pytest.mark.asyncio
    async def test_returns_at_most_three_passages_for_video(
        self, index: InMemoryVectorIndex
    ) -> None:
        await index.add_chunks(
            [TranscriptChunk(text=f"nix flakes part {i}", video_id="nix", chunk_index=i) for i in range(5)]
            + [TranscriptChunk(text="nix flakes elsewhere", video_id="other")]
        )

        text = await retrieve(index, "nix flakes", "nix")

        passages = text.split("\n")
        assert len(passages) == 3
        assert all(p.startswith("nix flakes part") for p in passages)

    @pytest.mark.asyncio
    async def test_never_returns_other_videos(self, index: InMemoryVectorIndex) -> None:
        await index.add_chunks(
            [
                TranscriptChunk(text="exact query words", video_id="target-no"),
                TranscriptChunk(text="unrelated sentence", video_id="target"),
            ]
        )

        text = await retrieve(index, "exact query words", "target")

        assert text == "unrelated sentence"

    @pytest.mark.asyncio
    async def test_unknown_video_returns_empty_string(self, index: InMemoryVectorIndex) -> None:
        await index.add_chunks([TranscriptChunk(text="something", video_id="abc")])
        assert await retrieve(index, "some query", "nonexistent_video") == ""

    @pytest.mark.asyncio
    async def test_passes_video_filter_and_k(self) -> None:
        mock_index = MagicMock()
        mock_index.similarity_search = AsyncMock(
            return_value=[
                TranscriptChunk(text="one", video_id="v"),
                TranscriptChunk(text="two", video_id="v"),
            ]
        )

        assert await retrieve(mock_index, "q", "v") == "one\ntwo"
        mock_index.similarity_search.assert_awaited_once_with("q", 3, filter={"video_id": "v"})

    @pytest.mark.asyncio
    async def test_embedding_failure_surfaces(self) -> None:
        openai_client = MagicMock()
        openai_client.embeddings.create = AsyncMock(side_effect=OpenAIError("quota exceeded"))
        failing = InMemoryVectorIndex(OpenAIEmbedder(client=openai_client))

        with pytest.raises(ExternalServiceError) as exc_info:
            await retrieve(failing, "q", "v")
        assert exc_info.value.service == "openai"


class TestRetrieveSimilarVideos:
    @pytest.mark.asyncio
    async def test_at_most_thirty_ids(self, index: InMemoryVectorIndex) -> None:
        await index.add_chunks(
            [TranscriptChunk(text=f"sourdough bread {i}", video_id=f"v{i}") for i in range(40)]
        )

        ids = await retrieve_similar_videos(index, "sourdough bread")

        assert len(ids) == 30

    @pytest.mark.asyncio
    async def test_duplicates_preserved_in_similarity_order(self) -> None:
        mock_index = MagicMock()
        mock_index.similarity_search = AsyncMock(
            return_value=[
                TranscriptChunk(text="a", video_id="v1"),
                TranscriptChunk(text="b", video_id="v2"),
                TranscriptChunk(text="c", video_id="v1"),
            ]
        )

        assert await retrieve_similar_videos(mock_index, "q") == ["v1", "v2", "v1"]
        mock_index.similarity_search.assert_awaited_once_with("q", 30)

    @pytest.mark.asyncio
    async def test_empty_index(self, index: InMemoryVectorIndex) -> None:
        assert await retrieve_similar_videos(index, "anything") == []


class TestOpenAIEmbedder:
    @pytest.mark.asyncio
    async def test_embed_documents(self) -> None:
        openai_client = MagicMock()
        response = MagicMock()
        response.data = [MagicMock(embedding=[0.1, 0.2]), MagicMock(embedding=[0.3, 0.4])]
        openai_client.embeddings.create = AsyncMock(return_value=response)
        embedder = OpenAIEmbedder(client=openai_client, model="text-embedding-3-large")

        vectors = await embedder.embed_documents(["a", "b"])

        assert vectors == [[0.1, 0.2], [0.3, 0.4]]
        openai_client.embeddings.create.assert_awaited_once_with(
            input=["a", "b"], model="text-embedding-3-large"
        )

    @pytest.mark.asyncio
    async def test_no_texts_no_request(self) -> None:
        openai_client = MagicMock()
        openai_client.embeddings.create = AsyncMock()
        embedder = OpenAIEmbedder(client=openai_client)

        assert await embedder.embed_documents([]) == []
        openai_client.embeddings.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_large_inputs_are_batched(self) -> None:
        openai_client = MagicMock()

        async def create(input: list[str], model: str) -> MagicMock:
            return MagicMock(data=[MagicMock(embedding=[float(len(t))]) for t in input])

        openai_client.embeddings.create = AsyncMock(side_effect=create)
        embedder = OpenAIEmbedder(client=openai_client)
        texts = ["x" * (i + 1) for i in range(120)]

        vectors = await embedder.embed_documents(texts)

        assert vectors == [[float(i + 1)] for i in range(120)]
        batch_sizes = [
            len(call.kwargs["input"]) for call in openai_client.embeddings.create.await_args_list
        ]
        assert batch_sizes == [50, 50, 20]

    @pytest.mark.asyncio
    async def test_aclose_closes_client(self) -> None:
        openai_client = MagicMock()
        openai_client.close = AsyncMock()

        await OpenAIEmbedder(client=openai_client).aclose()

        openai_client.close.assert_awaited_once()
