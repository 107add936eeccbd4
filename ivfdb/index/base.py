"""
Types shared by the index implementations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..core.exceptions import DimensionMismatchError


class IndexType(str, Enum):
    """Available index types."""
    FLAT = "flat"
    IVF = "ivf"


@dataclass
class IndexConfig:
    """Base configuration for indices."""

    dimension: int

    def validate(self) -> None:
        """Validate configuration."""
        from ..utils.validation import validate_dimension
        validate_dimension(self.dimension)


@dataclass
class IndexStats:
    """Statistics about an index."""

    index_type: str
    dimension: int
    vector_count: int
    memory_bytes: int
    is_trained: bool
    build_time_seconds: float = 0.0

    # Optional type-specific stats
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "index_type": self.index_type,
            "dimension": self.dimension,
            "vector_count": self.vector_count,
            "memory_bytes": self.memory_bytes,
            "memory_mb": round(self.memory_bytes / (1024 * 1024), 2),
            "is_trained": self.is_trained,
            "build_time_seconds": self.build_time_seconds,
            **self.extra,
        }


@dataclass(frozen=True, order=True)
class SearchResult:
    """
    Result from an index search.

    Ordering compares ``distance`` first and ``id`` second, which is the
    order results are returned in.

    Attributes:
        distance: Squared L2 distance from the query (or the raw inner
            product for an ``ip`` flat search)
        id: Vector identifier (insertion index in the store)
    """

    distance: float
    id: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"id": self.id, "distance": self.distance}

    def __repr__(self) -> str:
        return f"SearchResult(id={self.id}, distance={self.distance:.4f})"


def validate_query(query: ArrayLike, dimension: int) -> NDArray[np.float32]:
    """
    Validate and convert a query vector.

    Raises:
        DimensionMismatchError: If the query is not 1D or has the wrong length
    """
    query = np.asarray(query, dtype=np.float32)

    if query.ndim != 1:
        raise DimensionMismatchError(f"Query must be 1D, got {query.ndim}D")

    if len(query) != dimension:
        raise DimensionMismatchError(
            f"Query dimension {len(query)} != index dimension {dimension}"
        )

    return query
