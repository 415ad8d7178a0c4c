"""Vector index for transcript chunks: Supabase pgvector and an in-memory variant."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Protocol, cast

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from yt_agent.errors import ExternalServiceError
from yt_agent.ingestion.models import TranscriptChunk

if TYPE_CHECKING:
    from yt_agent.config import Settings
    from yt_agent.ingestion.embeddings import Embedder

logger = logging.getLogger(__name__)


class VectorIndex(Protocol):
    """Store of (chunk, embedding, metadata) rows searchable by cosine similarity."""

    async def add_chunks(self, chunks: list[TranscriptChunk]) -> int: ...

    async def similarity_search(
        self,
        query: str,
        k: int,
        filter: dict[str, Any] | None = None,
    ) -> list[TranscriptChunk]: ...

    async def aclose(self) -> None: ...


def _matches_filter(metadata: dict[str, Any], filter: dict[str, Any] | None) -> bool:
    if not filter:
        return True
    return all(metadata.get(key) == value for key, value in filter.items())


class SupabaseVectorIndex:
    """Transcript chunks stored in a Supabase ``transcripts`` table.

    Rows hold ``content``, ``metadata`` (jsonb) and ``vector``. Search goes
    through the ``match_transcripts`` SQL function (see ``supabase/schema.sql``),
    which orders by cosine distance and applies a jsonb containment filter.
    """

    def __init__(
        self,
        client: AsyncClient,
        embedder: Embedder,
        table: str = "transcripts",
        match_function: str = "match_transcripts",
    ) -> None:
        self.client = client
        self.embedder = embedder
        self.table = table
        self.match_function = match_function

    async def add_chunks(self, chunks: list[TranscriptChunk]) -> int:
        """Embed *chunks* and insert them as a single batch.

        Returns:
            Number of rows written.
        """
        if not chunks:
            return 0

        vectors = await self.embedder.embed_documents([c.text for c in chunks])
        rows: list[dict[str, object]] = [
            {"content": chunk.text, "metadata": chunk.metadata, "vector": vector}
            for chunk, vector in zip(chunks, vectors, strict=True)
        ]

        try:
            await self.client.table(self.table).insert(rows).execute()
        except (APIError, httpx.HTTPError) as exc:
            raise ExternalServiceError("supabase", f"insert into {self.table} failed: {exc}") from exc

        logger.debug("Stored %d chunks in %s", len(rows), self.table)
        return len(rows)

    async def similarity_search(
        self,
        query: str,
        k: int,
        filter: dict[str, Any] | None = None,
    ) -> list[TranscriptChunk]:
        """Return up to *k* chunks closest to *query*, most similar first."""
        embedding = await self.embedder.embed_query(query)
        try:
            result = await self.client.rpc(
                self.match_function,
                {
                    "query_embedding": embedding,
                    "match_count": k,
                    "filter": filter or {},
                },
            ).execute()
        except (APIError, httpx.HTTPError) as exc:
            raise ExternalServiceError("supabase", f"{self.match_function} failed: {exc}") from exc

        # Supabase .data is typed as JSON (broad union); cast to concrete type.
        rows = cast(list[dict[str, Any]], result.data or [])

        # Python-side filter guards the video_id invariant even if the SQL
        # function is deployed without the containment clause.
        rows = [r for r in rows if _matches_filter(r.get("metadata") or {}, filter)]

        return [TranscriptChunk.from_record(r["content"], r.get("metadata") or {}) for r in rows[:k]]

    async def aclose(self) -> None:
        """Close the PostgREST session behind the Supabase client."""
        await self.client.postgrest.aclose()


def _cosine_similarity(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 0.0
    return dot / norm


class InMemoryVectorIndex:
    """Process-local vector index for development and tests.

    Same contract as :class:`SupabaseVectorIndex`; nothing survives a restart.
    """

    def __init__(self, embedder: Embedder) -> None:
        self.embedder = embedder
        self.records: list[tuple[TranscriptChunk, list[float]]] = []

    async def add_chunks(self, chunks: list[TranscriptChunk]) -> int:
        if not chunks:
            return 0
        vectors = await self.embedder.embed_documents([c.text for c in chunks])
        self.records.extend(zip(chunks, vectors, strict=True))
        return len(chunks)

    async def similarity_search(
        self,
        query: str,
        k: int,
        filter: dict[str, Any] | None = None,
    ) -> list[TranscriptChunk]:
        query_vector = await self.embedder.embed_query(query)
        scored = [
            (_cosine_similarity(query_vector, vector), chunk)
            for chunk, vector in self.records
            if _matches_filter(chunk.metadata, filter)
        ]
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [chunk for _, chunk in scored[:k]]

    async def aclose(self) -> None:
        pass


async def create_vector_index(settings: Settings, embedder: Embedder) -> VectorIndex:
    """Build the vector index selected by ``settings.vector_backend``."""
    if settings.vector_backend == "memory":
        logger.warning("Using in-memory vector index; chunks are lost on restart")
        return InMemoryVectorIndex(embedder)

    client = await acreate_client(settings.supabase_url, settings.supabase_key)
    return SupabaseVectorIndex(
        client,
        embedder,
        table=settings.vector_table,
        match_function=settings.match_function,
    )
