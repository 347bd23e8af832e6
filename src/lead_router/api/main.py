"""FastAPI application factory for the routing API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .. import __version__
from .routes.health import router as health_router
from .routes.routing import router as routing_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting lead routing API")
    yield
    logger.info("Lead routing API shutting down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Lead Router API",
        description="Rule evaluation, agent scoring and lead routing",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(health_router)
    app.include_router(routing_router)

    return app
