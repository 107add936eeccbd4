"""
Bounded top-K candidate collection.
"""

from __future__ import annotations

import heapq
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .base import SearchResult
from ..utils.validation import validate_positive_int


class TopKCollector:
    """
    Size-capped max-heap of (id, distance) candidates.

    Invariant: ``len(self) <= capacity``. While there is room every
    candidate is kept; once full, a candidate replaces the current worst
    only if its distance is strictly smaller. Among equal distances the
    larger id counts as worse.

    Example:
        >>> topk = TopKCollector(capacity=2)
        >>> for id, dist in [(0, 5.0), (1, 1.0), (2, 3.0)]:
        ...     topk.push(id, dist)
        >>> [r.id for r in topk.results()]
        [1, 2]
    """

    def __init__(self, capacity: int):
        self._capacity = validate_positive_int("capacity", capacity)
        # Entries are (-distance, -id) so heap[0] is the worst candidate
        self._heap: List[Tuple[float, int]] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return len(self._heap) >= self._capacity

    @property
    def worst_distance(self) -> float:
        """Largest retained distance (inf while empty)."""
        if not self._heap:
            return float("inf")
        return -self._heap[0][0]

    def push(self, id: int, distance: float) -> bool:
        """
        Offer a candidate.

        Returns:
            True if the candidate was retained
        """
        if len(self._heap) < self._capacity:
            heapq.heappush(self._heap, (-distance, -id))
            return True

        if distance < -self._heap[0][0]:
            heapq.heapreplace(self._heap, (-distance, -id))
            return True

        return False

    def push_many(self, ids: Sequence[int], distances: Sequence[float]) -> int:
        """
        Offer a batch of candidates in order.

        Once the heap is full, candidates that cannot beat the current
        worst are dropped up front; the worst only ever decreases, so the
        outcome is the same as pushing one at a time.

        Returns:
            Number of candidates retained
        """
        ids = np.asarray(ids)
        distances = np.asarray(distances)

        if self.is_full:
            keep = distances < self.worst_distance
            ids = ids[keep]
            distances = distances[keep]

        retained = 0
        for id, distance in zip(ids.tolist(), distances.tolist()):
            if self.push(id, distance):
                retained += 1
        return retained

    def results(self, limit: Optional[int] = None) -> List[SearchResult]:
        """
        Retained candidates sorted ascending by distance, ties by id.

        Args:
            limit: Return at most this many results
        """
        ordered = sorted(
            SearchResult(distance=-neg_dist, id=-neg_id)
            for neg_dist, neg_id in self._heap
        )
        if limit is not None:
            ordered = ordered[:limit]
        return ordered

    def __len__(self) -> int:
        return len(self._heap)

    def __repr__(self) -> str:
        return f"TopKCollector(capacity={self._capacity}, size={len(self._heap)})"
