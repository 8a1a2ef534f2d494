"""
FastAPI Application Main Module

This module sets up the FastAPI application with its routers, lifespan hooks and
plain-text exception handlers. It serves as the entry point for the Waveform Metadata API.
"""

import shutil
from contextlib import asynccontextmanager
from fastapi import FastAPI

from . import __version__
from .routes import health, waveform
from .services.error_handler import register_exception_handlers
from .utils.config import AUDIOWAVEFORM_BIN, HOST, PORT, SERVICE_NAME
from .utils.logging_setup import setup_logger

# Configure logging
logger = setup_logger("waveform_api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events
    """
    logger.info(f"Starting {SERVICE_NAME} v{__version__}")
    if shutil.which(AUDIOWAVEFORM_BIN) is None:
        logger.warning(f"{AUDIOWAVEFORM_BIN} not found on PATH; waveform requests will fail")

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")


def create_app() -> FastAPI:
    """Build the application with its routers and exception handlers"""
    application = FastAPI(
        title="Waveform Metadata API",
        description="Audio metadata and audiowaveform data for WAV and MP3 files",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    register_exception_handlers(application)

    @application.get("/")
    async def root():
        """
        Root endpoint - API information
        """
        return {
            "name": SERVICE_NAME,
            "version": __version__,
            "status": "operational",
            "endpoints": {
                "waveform_metadata": "/waveform-metadata",
                "health": "/health",
                "readiness": "/health/readiness",
                "docs": "/docs"
            }
        }

    application.include_router(waveform.router)
    application.include_router(health.router)

    return application


app = create_app()


def run():
    """Console entry point"""
    import uvicorn

    uvicorn.run(
        app,
        host=HOST,
        port=PORT,
        log_level="info"
    )


if __name__ == "__main__":
    run()
