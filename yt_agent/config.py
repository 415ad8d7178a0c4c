from __future__ import annotations

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # Server
    api_url: str = "http://localhost:3000"
    port: int = 3000
    log_level: str = "INFO"

    # API Keys
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    brightdata_api_key: str = ""

    # Bright Data
    brightdata_trigger_url: str = "https://api.brightdata.com/datasets/v3/trigger"
    brightdata_dataset_id: str = "gd_lk56epmy2i5g7lzu0k"

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    vector_table: str = "transcripts"
    match_function: str = "match_transcripts"
    vector_backend: Literal["supabase", "memory"] = "supabase"

    # Models
    embedding_model: str = "text-embedding-3-large"
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 4096
    agent_max_steps: int = Field(default=25, ge=1)

    # Chunking / retrieval
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    retrieve_k: int = Field(default=3, ge=1)
    similar_videos_k: int = Field(default=30, ge=1)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _check_chunk_overlap(self) -> Self:
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )
        return self

    @property
    def webhook_url(self) -> str:
        """Callback URL handed to Bright Data when a scrape is triggered."""
        return f"{self.api_url.rstrip('/')}/webhook"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]
