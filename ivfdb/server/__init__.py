"""
ivfdb REST API Server.

A FastAPI-based REST API over a single VectorEngine.

Quick Start:
    >>> from ivfdb.server import create_app, run_server
    >>>
    >>> # Create and run server
    >>> app = create_app()
    >>> run_server(app, host="0.0.0.0", port=8000)

Or using command line:
    $ python -m ivfdb.server --host 0.0.0.0 --port 8000

Or with uvicorn:
    $ uvicorn ivfdb.server:app --reload
"""

from .app import create_app, app
from .config import ServerConfig, get_config
from .models import (
    # Vectors
    AddVectorRequest,
    AddVectorsRequest,
    VectorResponse,
    # Search
    SearchRequest,
    SearchResponse,
    BatchSearchRequest,
    BatchSearchResponse,
    # Common
    ErrorResponse,
)

__all__ = [
    # App
    "create_app",
    "app",
    "run_server",
    # Config
    "ServerConfig",
    "get_config",
    # Models
    "AddVectorRequest",
    "AddVectorsRequest",
    "VectorResponse",
    "SearchRequest",
    "SearchResponse",
    "BatchSearchRequest",
    "BatchSearchResponse",
    "ErrorResponse",
]


def run_server(
    app=None,
    host: str = "0.0.0.0",
    port: int = 8000,
    log_level: str = "info",
):
    """
    Run the ivfdb server.

    The engine lives in process memory, so the server always runs a
    single worker process.

    Args:
        app: FastAPI application (creates default if None)
        host: Host to bind to
        port: Port to bind to
        log_level: Logging level
    """
    import uvicorn

    if app is None:
        app = create_app()

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=log_level,
    )
