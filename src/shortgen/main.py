"""Main entry point for the shortgen service."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from shortgen import __version__
from shortgen.api.deps import clear_context, get_job_manager, init_context
from shortgen.api.routes import generations, health, schedules
from shortgen.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize resources on startup, clean up on shutdown."""
    context = init_context(settings)
    await context.dispatcher.start()
    try:
        yield
    finally:
        await context.dispatcher.stop()
        await get_job_manager().shutdown()
        clear_context()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="shortgen",
        description="Generate short videos and publish them to YouTube",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(generations.router)
    app.include_router(schedules.router)

    return app


app = create_app()


def main() -> None:
    """Run the application."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings.ensure_directories()
    uvicorn.run(
        "shortgen.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
