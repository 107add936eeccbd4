"""
Pydantic models for API requests and responses.

Numeric search parameters are passed through unchecked; the engine
validates them so that every contract violation maps to the same error
kinds (and HTTP statuses) as the Python API.
"""

from __future__ import annotations

from pydantic import BaseModel, field_validator
from typing import List, Dict, Any, Optional


# =============================================================================
# COMMON MODELS
# =============================================================================

class ErrorResponse(BaseModel):
    """Error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


# =============================================================================
# VECTOR MODELS
# =============================================================================

class AddVectorRequest(BaseModel):
    """Request to add a single vector."""
    vector: List[float]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"vector": [0.1, 0.2, 0.3, 0.4]}
            ]
        }
    }


class AddVectorResponse(BaseModel):
    """Response for a single vector addition."""
    success: bool = True
    id: int


class AddVectorsRequest(BaseModel):
    """Request to add multiple vectors."""
    vectors: List[List[float]]

    @field_validator('vectors')
    @classmethod
    def validate_vectors(cls, v):
        if not v:
            raise ValueError("Vectors list cannot be empty")
        return v

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"vectors": [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]]}
            ]
        }
    }


class AddVectorsResponse(BaseModel):
    """Response for batch vector addition."""
    success: bool = True
    added_count: int
    ids: List[int]


class VectorResponse(BaseModel):
    """A stored vector."""
    id: int
    vector: List[float]


# =============================================================================
# SEARCH MODELS
# =============================================================================

class SearchRequest(BaseModel):
    """Vector search request."""
    vector: List[float]
    top_k: int = 10

    # Probe budget overrides (index defaults when omitted)
    probe_ratio: Optional[float] = None
    max_nprobe: Optional[int] = None
    refine_factor: Optional[int] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "vector": [0.1, 0.2, 0.3, 0.4],
                    "top_k": 10,
                    "max_nprobe": 20,
                }
            ]
        }
    }


class SearchResult(BaseModel):
    """Single search result."""
    id: int
    distance: float


class SearchResponse(BaseModel):
    """Search response."""
    results: List[SearchResult]
    total: int
    search_time_ms: float


class BatchSearchRequest(BaseModel):
    """Batch search request."""
    vectors: List[List[float]]
    top_k: int = 10
    probe_ratio: Optional[float] = None
    max_nprobe: Optional[int] = None
    refine_factor: Optional[int] = None

    @field_validator('vectors')
    @classmethod
    def validate_vectors(cls, v):
        if not v:
            raise ValueError("Vectors list cannot be empty")
        return v


class BatchSearchResponse(BaseModel):
    """Batch search response."""
    results: List[List[SearchResult]]
    total_queries: int
    search_time_ms: float


# =============================================================================
# ADMIN MODELS
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    uptime_seconds: float


class BuildResponse(BaseModel):
    """Index build response."""
    success: bool = True
    indexed_count: int
    n_lists: int
    training_state: str
    training_iterations: int
    build_time_ms: float


class StatsResponse(BaseModel):
    """Engine statistics."""
    dimension: int
    count: int
    indexed: int
    unindexed: int
    num_threads: int
    store: Dict[str, Any]
    index: Dict[str, Any]
    wal: Dict[str, Any]
