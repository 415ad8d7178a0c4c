"""Pydantic request schemas for the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel


class GenerateRequest(BaseModel):
    """Request body for the /generate endpoint."""

    query: str
    thread_id: str
