"""
Vector endpoints.

Handlers are plain ``def`` functions: the engine blocks on its
read-write lock, so they run in FastAPI's threadpool.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..config import get_config
from ..models import (
    AddVectorRequest,
    AddVectorResponse,
    AddVectorsRequest,
    AddVectorsResponse,
    VectorResponse,
)
from ..dependencies import get_engine
from ...core.engine import VectorEngine
from ...core.exceptions import DimensionMismatchError

router = APIRouter()


@router.post(
    "",
    response_model=AddVectorResponse,
    status_code=201,
    summary="Add vector",
    description="Append one vector. Its id is its insertion index.",
)
def add_vector(
    request: AddVectorRequest,
    engine: VectorEngine = Depends(get_engine),
):
    """Add a single vector."""
    return AddVectorResponse(id=engine.add(request.vector))


@router.post(
    "/batch",
    response_model=AddVectorsResponse,
    status_code=201,
    summary="Add vectors",
    description="Append several vectors. Nothing is stored if any vector is invalid.",
)
def add_vectors(
    request: AddVectorsRequest,
    engine: VectorEngine = Depends(get_engine),
):
    """Add a batch of vectors."""
    limit = get_config().max_vectors_per_request
    if len(request.vectors) > limit:
        raise HTTPException(
            status_code=413,
            detail=f"Too many vectors in single request (max {limit})",
        )

    for vector in request.vectors:
        if len(vector) != engine.dimension:
            raise DimensionMismatchError(
                f"Vector dimension {len(vector)} != engine dimension {engine.dimension}"
            )

    ids = engine.add_batch(request.vectors)
    return AddVectorsResponse(added_count=len(ids), ids=list(ids))


@router.get(
    "/{vector_id}",
    response_model=VectorResponse,
    summary="Get vector",
)
def get_vector(
    vector_id: int,
    engine: VectorEngine = Depends(get_engine),
):
    """Fetch a stored vector by id."""
    return VectorResponse(id=vector_id, vector=engine.get(vector_id).tolist())
