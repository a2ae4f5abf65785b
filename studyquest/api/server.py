"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from studyquest.api.routes import router
from studyquest.api.middleware import setup_cors, setup_rate_limiting, setup_error_handlers
from studyquest.db.connection import db
from studyquest.services.container import init_container
from studyquest import config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application"""
    # Startup
    logger.info("Starting API server...")
    config.validate_config()

    if config.STORAGE_BACKEND == "postgres":
        await db.init_pool()
        logger.info("Database pool initialized")
    else:
        logger.warning("Using in-memory storage - stats are NOT persisted!")

    init_container(config.STORAGE_BACKEND)

    yield

    # Shutdown
    logger.info("Shutting down API server...")
    await db.close_pool()
    logger.info("Database pool closed")


def create_api_application() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="StudyQuest API",
        description="Task completion, points, levels, streaks and milestone certificates",
        version="1.0.0",
        lifespan=lifespan
    )

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)
    setup_error_handlers(app)

    # Include routes
    app.include_router(router)

    logger.info("FastAPI application created")

    return app
