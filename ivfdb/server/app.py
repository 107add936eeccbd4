"""
Main FastAPI application for ivfdb.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from .config import get_config, ServerConfig
from .routes import create_api_router
from .middleware import RequestLoggingMiddleware
from .dependencies import EngineManager
from .. import __version__
from ..core.exceptions import ErrorKind, IVFDBError
from ..utils.logging import get_logger

logger = get_logger("ivfdb.server")


# HTTP status for each engine error kind
ERROR_STATUS = {
    ErrorKind.DIMENSION_MISMATCH: 400,
    ErrorKind.INVALID_PARAMETER: 400,
    ErrorKind.INDEX_OUT_OF_RANGE: 404,
    ErrorKind.INSUFFICIENT_DATA: 409,
    ErrorKind.NOT_TRAINED: 409,
    ErrorKind.STORAGE: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting ivfdb server...")
    engine = EngineManager.get_engine()
    logger.info(
        "Engine ready: dimension=%d, %d vectors, index built: %s",
        engine.dimension,
        engine.count,
        engine.is_built,
    )

    yield

    # Shutdown
    logger.info("Shutting down ivfdb server...")
    EngineManager.shutdown()
    logger.info("Server shutdown complete")


def create_app(config: ServerConfig = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        config: Optional server configuration

    Returns:
        FastAPI application instance
    """
    if config:
        from .config import set_config
        set_config(config)

    config = get_config()

    # Create FastAPI app
    app = FastAPI(
        title="ivfdb API",
        description="""
# ivfdb - Approximate Nearest Neighbor Search

An in-memory vector engine with an IVF (inverted file) index.

## Quick Start

1. Add vectors
2. Build the index
3. Search for nearest neighbors

        """,
        version=__version__,
        docs_url="/docs" if config.docs_enabled else None,
        redoc_url="/redoc" if config.docs_enabled else None,
        openapi_url="/openapi.json" if config.docs_enabled else None,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(IVFDBError)
    async def engine_exception_handler(request: Request, exc: IVFDBError):
        status_code = ERROR_STATUS.get(exc.kind, 500)
        if status_code >= 500:
            logger.error("Engine error: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=status_code,
            content={
                "success": False,
                "error": exc.kind.value,
                "detail": str(exc),
            }
        )

    # Add global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
                "detail": str(exc) if config.log_level == "DEBUG" else None,
            }
        )

    # Include API routes
    api_router = create_api_router()
    app.include_router(api_router, prefix=config.api_prefix)

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "name": "ivfdb",
            "version": __version__,
            "docs": "/docs",
            "api": config.api_prefix,
        }

    return app


# Default app instance
app = create_app()
