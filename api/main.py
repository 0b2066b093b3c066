"""
Cocktail Dispenser FastAPI Application

Main entry point for the API server.
Run with: uvicorn api.main:app --reload
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.config import get_settings
from api.dependencies import get_level_store, get_venting_orchestrator
from api.middleware.errors import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.routers import availability, health, levels, venting

# Configure logging
logging.basicConfig(
    level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()

    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    os.makedirs(settings.data_dir, exist_ok=True)

    store = get_level_store()
    logger.info(f"Level store ready ({len(store.get())} pumps)")

    yield

    # Shutdown
    logger.info("Shutting down...")
    orchestrator = get_venting_orchestrator()
    orchestrator.reset()
    await orchestrator.wait()

    if store.flush():
        logger.info("Flushed pending level write")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Ingredient levels, availability and pump venting for the cocktail machine",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Custom middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(
        levels.router,
        prefix="/api/v1/levels",
        tags=["Levels"]
    )
    app.include_router(
        availability.router,
        prefix="/api/v1/availability",
        tags=["Availability"]
    )
    app.include_router(
        venting.router,
        prefix="/api/v1/venting",
        tags=["Venting"]
    )

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
