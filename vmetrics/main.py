"""VMetrics — FastAPI Application Entry Point.

Marketing-analytics metric engine over the RedTrack API.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vmetrics.database import check_connection, init_db
from vmetrics.scheduler.jobs import start_scheduler, stop_scheduler
from vmetrics.api.dashboard_routes import router as dashboard_router
from vmetrics.api.settings_routes import router as settings_router
from vmetrics.core.logging import get_logger

logger = get_logger("main")

VERSION = "1.0.0"

IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("VMetrics starting up...")
    logger.info(f"Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    if check_connection():
        try:
            init_db()
        except Exception as e:
            logger.error(f"Table creation failed: {e}")
    else:
        logger.error("Database NOT connected — settings will not persist")
    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    logger.info("VMetrics shut down")


app = FastAPI(
    title="VMetrics",
    description="Pull RedTrack campaign data, aggregate it, and serve formatted marketing metrics.",
    version=VERSION,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(dashboard_router)
app.include_router(settings_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "vmetrics",
        "version": VERSION,
    }
