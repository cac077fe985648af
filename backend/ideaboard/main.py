"""
FastAPI application entry point.
Sets up the API with lifespan events for database initialization.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from ideaboard.config import settings
from ideaboard.database import init_db
from ideaboard.api.router import api_router
from ideaboard.auth.firebase import initialize_firebase
from ideaboard.exceptions import IdeaBoardError, ProfileNotFound, QuotaExceeded
from ideaboard.middleware.metrics_middleware import MetricsMiddleware
from ideaboard.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: Initialize database and Firebase Admin SDK
    - Shutdown: Cleanup (if needed)
    """
    configure_logging('ideaboard-api', settings.log_level)

    await init_db()

    # Firebase is needed for auth and push; optional for local dev
    if settings.firebase_project_id:
        try:
            initialize_firebase()
        except Exception as e:
            if settings.environment == "production":
                raise
            logger.warning(f"Firebase initialization failed: {e}")

    yield


app = FastAPI(
    title="IdeaBoard API",
    description="Backend API for IdeaBoard: idea validation, build plans and plan billing",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware (must be after CORS to track all requests)
app.add_middleware(MetricsMiddleware)

app.include_router(api_router, prefix="/api")


@app.exception_handler(IdeaBoardError)
async def ideaboard_error_handler(request: Request, exc: IdeaBoardError):
    """Map domain errors to HTTP responses."""
    if isinstance(exc, ProfileNotFound) or exc.status_code >= 500:
        logger.error(
            f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}",
            exc_info=exc.original_error,
        )
    elif not isinstance(exc, QuotaExceeded):  # quota rejections are logged by the gate
        logger.warning(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "IdeaBoard API",
        "version": "0.1.0",
        "environment": settings.environment
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
