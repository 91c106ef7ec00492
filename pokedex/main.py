"""FastAPI application for the Pokédex query layer."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from pokedex.config import get_settings
from pokedex.query.service import QueryService
from pokedex.routes.api import router as api_router
from pokedex.security import limiter
from pokedex.telemetry.sentry import init_sentry

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Only activates if SENTRY_DSN is set
init_sentry(settings)


def create_app(service: Optional[QueryService] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        service: Pre-built QueryService (tests). When None, one is created
            at startup and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        owned = service is None
        app.state.query_service = service or QueryService.create(settings)
        logger.info("Starting Pokédex query service...")
        try:
            yield
        finally:
            if owned:
                await app.state.query_service.close()
            logger.info("Pokédex query service stopped")

    app = FastAPI(
        title="Pokédex",
        description="Cached search and type filtering over PokeAPI",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Add rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.include_router(api_router)
    return app


app = create_app()
