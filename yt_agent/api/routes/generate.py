"""Generate endpoint: one agent turn per request."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse

from yt_agent.api.dependencies import Services
from yt_agent.api.models import GenerateRequest
from yt_agent.errors import ExternalServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate", response_class=PlainTextResponse)
async def generate(request: GenerateRequest, services: Services) -> str:
    """Answer *query* in the conversation identified by *thread_id*.

    Returns the final assistant message as plain text.
    """
    logger.info("Generate request for thread %s: %r", request.thread_id, request.query)
    try:
        return await services.agent.invoke(request.thread_id, request.query)
    except ExternalServiceError as exc:
        logger.exception("Agent invocation failed for thread %s", request.thread_id)
        raise HTTPException(status_code=500, detail="Internal Server Error") from exc
