# src/tiptune_plays/main.py
"""Main entry point for the TipTune plays application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from tiptune_plays import __version__
from tiptune_plays.api.v1 import plays_router
from tiptune_plays.core.settings import settings


def configure_logging() -> None:
    """Apply the configured level and format to the root logger."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


configure_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="TipTune Plays API",
    description="Listen event ingestion and play counting",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(plays_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "TipTune Plays API",
        "version": __version__,
        "description": "Listen event ingestion and play counting",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting %s on port 8000", settings.app_name)
    uvicorn.run("tiptune_plays.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
