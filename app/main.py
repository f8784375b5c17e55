"""
DSX Extractor - FastAPI Application

Upload DataStage .dsx exports (or zip archives of them) and get back
structured job descriptions.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dsx_extractor import __version__
from dsx_extractor.config_loader import configure_logging

from .config import get_settings
from .routers import jobs

configure_logging("DEBUG" if get_settings().debug else "INFO")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"Upload limit: {settings.max_upload_mb} MB")
    yield
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title="DSX Extractor",
    description="Extract structured job descriptions from DataStage .dsx exports",
    version=__version__,
    lifespan=lifespan,
)

# CORS for browser clients
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "version": __version__,
        "app": settings.app_name,
    }


@app.get("/api")
async def api_root():
    """API root - list available endpoints."""
    return {
        "message": "DSX Extractor API",
        "endpoints": {
            "extract": "/api/jobs/extract - Extract jobs from .dsx or .zip uploads",
            "export": "/api/jobs/export - Download extracted jobs as a zip of JSON files",
        },
        "docs": "/docs",
    }
