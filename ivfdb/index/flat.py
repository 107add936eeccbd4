"""
Flat (Brute-Force) Index Implementation.

The Flat index performs exact nearest neighbor search by
computing distances to all vectors. It provides 100% recall
but has O(n) search complexity.

Best for:
    - Small datasets
    - Ground truth when measuring IVF recall
"""

from __future__ import annotations

from typing import List

import numpy as np
from numpy.typing import ArrayLike

from .base import IndexStats, IndexType, SearchResult, validate_query
from .topk import TopKCollector
from ..core.exceptions import DimensionMismatchError
from ..core.store import VectorStore
from ..distance import get_metric
from ..utils.validation import validate_dimension, validate_k


# Rows scored per kernel call
DEFAULT_BATCH_SIZE = 10000


class FlatIndex:
    """
    Flat (Brute-Force) Index.

    Scores the query against every vector in the store. With ``l2`` the
    smallest squared distances win; with ``ip`` the largest inner products
    win and ``SearchResult.distance`` holds the raw product.

    Example:
        >>> flat = FlatIndex(dimension=128)
        >>> truth = flat.search(query, store, k=10)
    """

    def __init__(
        self,
        dimension: int,
        metric: str = "l2",
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self._dimension = validate_dimension(dimension)
        self._metric = get_metric(metric)
        self._batch_size = batch_size

    @property
    def index_type(self) -> IndexType:
        return IndexType.FLAT

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def metric(self) -> str:
        return self._metric.name

    def search(
        self,
        query: ArrayLike,
        store: VectorStore,
        k: int = 10,
    ) -> List[SearchResult]:
        """
        Exact k nearest neighbors of ``query`` among all stored vectors.

        Returns:
            At most k results, best first, ties by id
        """
        k = validate_k(k)
        query = validate_query(query, self._dimension)
        if store.dimension != self._dimension:
            raise DimensionMismatchError(
                f"Store dimension {store.dimension} != index dimension {self._dimension}"
            )

        vectors = store.vectors()
        sign = -1.0 if self._metric.is_similarity else 1.0
        collector = TopKCollector(k)

        for start in range(0, len(vectors), self._batch_size):
            stop = min(start + self._batch_size, len(vectors))
            scores = self._metric.batch_function(query, vectors[start:stop])
            collector.push_many(np.arange(start, stop), sign * scores)

        if sign > 0:
            return collector.results()

        return [
            SearchResult(distance=-r.distance, id=r.id)
            for r in collector.results()
        ]

    def search_batch(
        self,
        queries: ArrayLike,
        store: VectorStore,
        k: int = 10,
    ) -> List[List[SearchResult]]:
        """Search with multiple queries."""
        queries = np.asarray(queries, dtype=np.float32)
        if queries.ndim != 2:
            raise DimensionMismatchError(f"Queries must be 2D, got {queries.ndim}D")
        return [self.search(q, store, k=k) for q in queries]

    def stats(self, store: VectorStore) -> IndexStats:
        """Get index statistics."""
        return IndexStats(
            index_type=self.index_type.value,
            dimension=self._dimension,
            vector_count=store.count,
            memory_bytes=store.count * self._dimension * 4,  # float32
            is_trained=True,
            extra={"metric": self._metric.name},
        )

    def __repr__(self) -> str:
        return f"FlatIndex(dimension={self._dimension}, metric='{self._metric.name}')"
