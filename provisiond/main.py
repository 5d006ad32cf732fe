"""Main FastAPI application for provisiond daemon.

This module creates and configures the FastAPI application that exposes
the provisioning profile index via REST API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from provisioning_library.cache import get_default_handle
from provisioning_library.config.loader import load_config

from .routers import profiles_router
from .routers import status_router
from .routers.status import VERSION

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Handles startup and shutdown events.

    Args:
        app: FastAPI application instance
    """
    # Startup
    config = load_config()
    logger.info(f"Starting provisiond daemon on {config.host}:{config.port}")
    logger.info(f"Index file: {config.get_cache_path()}")

    # Warm the index
    try:
        handle = get_default_handle(config.get_profile_directories(), config.get_cache_path())
        index = handle.snapshot()
        logger.info(f"Profile index ready: {len(index.records)} profiles")
    except Exception as e:
        logger.warning(f"Profile index warm-up failed: {e}")

    yield

    # Shutdown
    logger.info("Shutting down provisiond daemon")


# Create FastAPI application
app = FastAPI(
    title="provisiond",
    description="REST API daemon for querying installed Apple provisioning profiles",
    version=VERSION,
    lifespan=lifespan,
)

# Include routers
app.include_router(status_router)
app.include_router(profiles_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint.

    Returns:
        Welcome message with API information
    """
    return {
        "name": "provisiond",
        "version": VERSION,
        "description": "REST API daemon for the provisioning profile index",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }
