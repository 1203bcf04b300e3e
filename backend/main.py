"""
FastAPI application entry point for the Lao Cinema access API.

Video playback is gated by rentals: viewers (signed-in or anonymous) rent
a movie or a short pack, and only then receive short-lived signed URLs
for its HLS streams.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lao_cinema.api.errors import install_error_handlers
from lao_cinema.api.routes import health
from lao_cinema.api.routes import video_tokens
from lao_cinema.api.routes import rentals
from lao_cinema.api.routes import pricing
from lao_cinema.api.routes import purchases
from lao_cinema.config.settings import get_access_config

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Lao Cinema access API")

    # Missing configuration is logged, not fatal
    app.state.video_tokens_configured = bool(os.getenv("VIDEO_TOKEN_SECRET"))
    if not app.state.video_tokens_configured:
        logger.error("VIDEO_TOKEN_SECRET is not set. Video token requests will fail with 500.")

    database_url = os.getenv("DATABASE_URL")
    app.state.database_configured = bool(database_url)
    if not database_url:
        logger.error("DATABASE_URL is not set. Database-backed endpoints will return 503.")
    else:
        masked = database_url.split("@")[-1] if "@" in database_url else "(no credentials)"
        logger.info("DATABASE_URL configured", extra={"host_db": masked})

    config = get_access_config()
    logger.info(
        "Rental settings",
        extra={"rental_duration_ms": config.rental_duration_ms},
    )

    yield

    logger.info("Shutting down Lao Cinema access API")


def create_app() -> FastAPI:
    """Build the application with middleware, routes and error handlers."""
    app = FastAPI(
        title="Lao Cinema Access API",
        description="Rental-gated video access",
        version="1.0.0",
        lifespan=lifespan,
    )

    cors_origins = get_access_config().cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    app.include_router(health.router)
    app.include_router(video_tokens.router)
    app.include_router(rentals.router)
    app.include_router(pricing.router)
    app.include_router(purchases.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("ENV") == "development"
    )
