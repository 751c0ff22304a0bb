"""
Ride Log - FastAPI Backend

Main application entry point and configuration.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ridelog.api.rides import router as rides_router, convert_router
from ridelog.api.schemas import HealthResponse
from ridelog.services.errors import (
    AuthenticationError,
    EmptyTrackError,
    IdentityProviderError,
    MetadataError,
    ParseError,
    RideLogError,
)
from ridelog.services.repository import get_repository


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


APP_NAME = "Ride Log"
APP_VERSION = "0.1.0"
CORS_ORIGINS_ENV = "RIDELOG_CORS_ORIGINS"

# HTTP status per domain error (most specific class first)
ERROR_STATUS = [
    (ParseError, 400),
    (EmptyTrackError, 422),
    (MetadataError, 422),
    (AuthenticationError, 401),
    (IdentityProviderError, 503),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting Ride Log Backend")

    repo = get_repository()
    logger.info(f"Ride repository at {repo.data_folder} ({repo.ride_count} rides)")

    yield

    # Shutdown
    logger.info("Shutting down Ride Log Backend")


# Create FastAPI app
app = FastAPI(
    title=APP_NAME,
    description="""
    Backend API for electric skateboard ride logs.

    ## Features
    - Convert recorder telemetry CSV into GPX tracks
    - Store uploaded rides (CSV or GPX) per user
    - Compute trip statistics: speed, current, distance, energy, duration

    ## Data Flow
    1. Upload a log via POST /rides (bearer token required)
    2. List rides via GET /rides
    3. Get ride metadata via GET /rides/{id}
    4. Download the GPX track via GET /rides/{id}/gpx
    """,
    version=APP_VERSION,
    lifespan=lifespan,
)


# CORS middleware (browser uploader)
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv(CORS_ORIGINS_ENV, "*").split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RideLogError)
async def ride_log_error_handler(request: Request, exc: RideLogError):
    """Map domain errors to JSON error responses."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS if isinstance(exc, error_type)),
        500,
    )
    logger.warning(f"{request.method} {request.url.path} failed: {exc.code}: {exc}")
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "code": exc.code},
        headers=headers,
    )


# Include routers
app.include_router(convert_router)
app.include_router(rides_router)


@app.get("/")
async def root():
    """Root endpoint - basic health check."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    repo = get_repository()

    return HealthResponse(
        status="healthy",
        data_folder=str(repo.data_folder),
        ride_count=repo.ride_count,
    )
