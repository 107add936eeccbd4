"""
Search endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
import time

from ..config import get_config
from ..models import (
    SearchRequest,
    SearchResponse,
    SearchResult,
    BatchSearchRequest,
    BatchSearchResponse,
)
from ..dependencies import get_engine
from ...core.engine import VectorEngine
from ...core.exceptions import DimensionMismatchError

router = APIRouter()


@router.post(
    "/search",
    response_model=SearchResponse,
    summary="Search vectors",
    description="Approximate top-k search over the indexed vectors.",
)
def search_vectors(
    request: SearchRequest,
    engine: VectorEngine = Depends(get_engine),
):
    """Search for similar vectors."""
    start_time = time.time()

    results = engine.search(
        request.vector,
        top_k=request.top_k,
        probe_ratio=request.probe_ratio,
        max_nprobe=request.max_nprobe,
        refine_factor=request.refine_factor,
    )

    search_time_ms = (time.time() - start_time) * 1000

    return SearchResponse(
        results=[SearchResult(id=r.id, distance=r.distance) for r in results],
        total=len(results),
        search_time_ms=search_time_ms,
    )


@router.post(
    "/search/batch",
    response_model=BatchSearchResponse,
    summary="Batch search",
    description="Search with several query vectors at once.",
)
def batch_search(
    request: BatchSearchRequest,
    engine: VectorEngine = Depends(get_engine),
):
    """Search with multiple queries."""
    limit = get_config().max_queries_per_request
    if len(request.vectors) > limit:
        raise HTTPException(
            status_code=413,
            detail=f"Too many queries (max {limit})",
        )

    for vector in request.vectors:
        if len(vector) != engine.dimension:
            raise DimensionMismatchError(
                f"Query dimension {len(vector)} != engine dimension {engine.dimension}"
            )

    start_time = time.time()

    all_results = engine.search_batch(
        request.vectors,
        top_k=request.top_k,
        probe_ratio=request.probe_ratio,
        max_nprobe=request.max_nprobe,
        refine_factor=request.refine_factor,
    )

    search_time_ms = (time.time() - start_time) * 1000

    return BatchSearchResponse(
        results=[
            [SearchResult(id=r.id, distance=r.distance) for r in results]
            for results in all_results
        ],
        total_queries=len(all_results),
        search_time_ms=search_time_ms,
    )
