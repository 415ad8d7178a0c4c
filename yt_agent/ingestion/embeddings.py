"""Embedding helpers using OpenAI text-embedding-3-large."""

from __future__ import annotations

from typing import Protocol

from openai import AsyncOpenAI, OpenAIError

from yt_agent.errors import ExternalServiceError

EMBED_BATCH_SIZE = 50


class Embedder(Protocol):
    """Anything that turns texts into embedding vectors."""

    async def embed_documents(self, texts: list[str]) -> list[list[float]]: ...

    async def embed_query(self, text: str) -> list[float]: ...


class OpenAIEmbedder:
    """Embed texts with the OpenAI embeddings API."""

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        model: str = "text-embedding-3-large",
        batch_size: int = EMBED_BATCH_SIZE,
    ) -> None:
        self.client = client or AsyncOpenAI()  # reads OPENAI_API_KEY from env
        self.model = model
        self.batch_size = batch_size

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of texts, ``batch_size`` inputs per request.

        Args:
            texts: Strings to embed.

        Returns:
            A list of embedding vectors (one per input text).

        Raises:
            ExternalServiceError: If an OpenAI call fails.
        """
        vectors: list[list[float]] = []
        for i in range(0, len(texts), self.batch_size):
            batch = texts[i : i + self.batch_size]
            try:
                response = await self.client.embeddings.create(input=batch, model=self.model)
            except OpenAIError as exc:
                raise ExternalServiceError("openai", f"embedding request failed: {exc}") from exc
            vectors.extend(item.embedding for item in response.data)
        return vectors

    async def embed_query(self, text: str) -> list[float]:
        """Generate an embedding vector for a single query string."""
        vectors = await self.embed_documents([text])
        return vectors[0]

    async def aclose(self) -> None:
        await self.client.close()
