from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from yt_agent.api.dependencies import AppServices, build_services
from yt_agent.api.routes.generate import router as generate_router
from yt_agent.api.routes.webhook import router as webhook_router
from yt_agent.config import get_settings

logger = logging.getLogger(__name__)


def create_app(services: AppServices | None = None) -> FastAPI:
    """Build the FastAPI app.

    When *services* is given it is used as-is and not closed on shutdown;
    otherwise handles are built from :func:`get_settings` at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if services is not None:
            app.state.services = services
            yield
            return

        built = await build_services(get_settings())
        app.state.services = built
        try:
            yield
        finally:
            await built.aclose()

    app = FastAPI(
        title="YouTube Transcript Agent API",
        description="Claude agent answering questions over scraped YouTube transcripts",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://localhost:3000",
            "https://gray-colonial-jellyfish.app.genez.io",
        ],
        allow_origin_regex=r"https://.*\.genez\.io",
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(generate_router)
    app.include_router(webhook_router)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "Hello World!"

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    return app


def main() -> None:
    """Run the API server with uvicorn on the configured port."""
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Server starting on port %d", settings.port)
    uvicorn.run(create_app(), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
