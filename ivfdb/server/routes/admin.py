"""
Admin and index management endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
import time

from ..models import (
    BuildResponse,
    HealthResponse,
    StatsResponse,
)
from ..dependencies import get_engine, get_uptime
from ... import __version__
from ...core.engine import VectorEngine

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the server is healthy and running.",
)
def health_check(
    uptime: float = Depends(get_uptime),
):
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        uptime_seconds=uptime,
    )


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Engine statistics",
    description="Store, index and write-ahead log statistics.",
)
def engine_stats(
    engine: VectorEngine = Depends(get_engine),
):
    """Get engine statistics."""
    return StatsResponse(**engine.stats())


@router.post(
    "/build",
    response_model=BuildResponse,
    summary="Build index",
    description="Train the clusters and rebuild the inverted lists over every stored vector.",
)
def build_index(
    engine: VectorEngine = Depends(get_engine),
):
    """(Re)build the IVF index."""
    start_time = time.time()
    engine.build()
    build_time_ms = (time.time() - start_time) * 1000

    stats = engine.index.stats()
    return BuildResponse(
        indexed_count=stats.vector_count,
        n_lists=engine.index.n_lists,
        training_state=stats.extra["training_state"],
        training_iterations=stats.extra["training_iterations"],
        build_time_ms=build_time_ms,
    )
