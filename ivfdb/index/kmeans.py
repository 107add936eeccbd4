"""
Lloyd's k-means, used to train the IVF centroids.

Seeding draws ``k`` vector ids uniformly with replacement from a
caller-supplied ``numpy.random.RandomState``, so a fixed seed gives a fixed
partition. The assignment step is split into contiguous shards and run on
the worker pool.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..core.exceptions import (
    DimensionMismatchError,
    IndexNotTrainedError,
    InsufficientDataError,
)
from ..core.store import VectorStore
from ..distance import pairwise_l2_squared
from ..utils.logging import get_logger
from ..utils.parallel import WorkerPool
from ..utils.validation import validate_positive_int


logger = get_logger(__name__)


class ClusteringState(str, Enum):
    """Lifecycle of a k-means run."""
    UNINITIALIZED = "uninitialized"
    SEEDED = "seeded"
    ITERATING = "iterating"
    CONVERGED = "converged"
    BUDGET_EXHAUSTED = "budget_exhausted"


def assign_nearest(
    vectors: NDArray[np.float32],
    centroids: NDArray[np.float32],
    pool: Optional[WorkerPool] = None,
    previous: Optional[NDArray[np.int64]] = None,
) -> Tuple[NDArray[np.int64], NDArray[np.float64], int]:
    """
    Assign every vector to its nearest centroid by squared L2.

    Ties go to the lowest centroid index.

    Args:
        vectors: Array of shape (n, d)
        centroids: Array of shape (k, d)
        pool: Optional worker pool for sharded assignment
        previous: Labels from the previous pass, used to count changes

    Returns:
        Tuple of (labels, distances to the assigned centroid, number of
        labels that differ from ``previous``). With no ``previous`` every
        vector counts as changed.
    """
    n = len(vectors)

    def assign_shard(start: int, stop: int) -> Tuple[NDArray, NDArray, int]:
        distances = pairwise_l2_squared(vectors[start:stop], centroids)
        labels = np.argmin(distances, axis=1).astype(np.int64)
        nearest = distances[np.arange(stop - start), labels]
        if previous is None:
            changed = stop - start
        else:
            changed = int(np.count_nonzero(labels != previous[start:stop]))
        return labels, nearest, changed

    if n == 0:
        return np.empty(0, dtype=np.int64), np.empty(0, dtype=np.float64), 0

    if pool is None:
        shards = [assign_shard(0, n)]
    else:
        shards = pool.map_shards(assign_shard, n)

    labels = np.concatenate([s[0] for s in shards])
    nearest = np.concatenate([s[1] for s in shards])
    changed = sum(s[2] for s in shards)
    return labels, nearest, changed


class KMeans:
    """
    K-Means clustering over a VectorStore.

    Example:
        >>> kmeans = KMeans(n_clusters=2, max_iterations=10)
        >>> kmeans.train(store, np.random.RandomState(42))
        >>> kmeans.state
        <ClusteringState.CONVERGED: 'converged'>
        >>> kmeans.centroids.shape
        (2, 2)
    """

    def __init__(
        self,
        n_clusters: int,
        max_iterations: int = 20,
        pool: Optional[WorkerPool] = None,
    ):
        """
        Args:
            n_clusters: Number of centroids (k)
            max_iterations: Maximum number of assignment passes
            pool: Optional worker pool for the assignment step
        """
        self.n_clusters = validate_positive_int("n_clusters", n_clusters)
        self.max_iterations = validate_positive_int("max_iterations", max_iterations)
        self._pool = pool

        self._centroids: Optional[NDArray[np.float32]] = None
        self._labels: Optional[NDArray[np.int64]] = None
        self._n_iterations = 0
        self._inertia = 0.0
        self._state = ClusteringState.UNINITIALIZED

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def state(self) -> ClusteringState:
        return self._state

    @property
    def is_trained(self) -> bool:
        return self._state in (
            ClusteringState.CONVERGED,
            ClusteringState.BUDGET_EXHAUSTED,
        )

    @property
    def centroids(self) -> NDArray[np.float32]:
        """Trained centroids, shape (n_clusters, d), read-only."""
        self._check_trained()
        return self._centroids

    @property
    def labels(self) -> NDArray[np.int64]:
        """Cluster assignment of every training vector from the final pass."""
        self._check_trained()
        return self._labels

    @property
    def n_iterations(self) -> int:
        """Number of assignment passes run by the last ``train``."""
        return self._n_iterations

    @property
    def inertia(self) -> float:
        """Sum of squared distances to the assigned centroid in the final pass."""
        return self._inertia

    # =========================================================================
    # TRAINING
    # =========================================================================

    def train(self, store: VectorStore, rng: np.random.RandomState) -> NDArray[np.float32]:
        """
        Run Lloyd's algorithm on every vector in ``store``.

        Args:
            store: Training vectors
            rng: Random state used to pick the initial centroids

        Returns:
            The trained centroids

        Raises:
            InsufficientDataError: If the store holds fewer than
                ``n_clusters`` vectors
        """
        count = store.count
        k = self.n_clusters

        if count < k:
            raise InsufficientDataError(
                f"Need at least {k} vectors to train {k} clusters, got {count}"
            )

        vectors = store.vectors()

        # Seed with k random vectors (duplicates allowed)
        seeds = rng.randint(0, count, size=k)
        centroids = store.take(seeds)
        self._state = ClusteringState.SEEDED
        logger.debug("KMeans seeded %d centroids from %d vectors", k, count)

        labels = np.full(count, -1, dtype=np.int64)
        nearest = np.zeros(count, dtype=np.float64)
        self._state = ClusteringState.ITERATING
        converged = False
        iteration = 0

        for iteration in range(self.max_iterations):
            labels, nearest, changed = assign_nearest(
                vectors, centroids, self._pool, previous=labels
            )
            logger.debug(
                "KMeans iteration %d: %d/%d reassigned", iteration + 1, changed, count
            )

            if changed == 0 and iteration > 0:
                converged = True
                break

            centroids = self._update(vectors, labels, centroids)

        self._n_iterations = iteration + 1
        self._labels = labels
        self._inertia = float(nearest.sum())

        centroids.flags.writeable = False
        self._centroids = centroids

        if converged:
            self._state = ClusteringState.CONVERGED
            logger.info("KMeans converged at iteration %d", self._n_iterations)
        else:
            self._state = ClusteringState.BUDGET_EXHAUSTED
            logger.info(
                "KMeans stopped after %d iterations without converging",
                self._n_iterations,
            )

        return self._centroids

    def _update(
        self,
        vectors: NDArray[np.float32],
        labels: NDArray[np.int64],
        centroids: NDArray[np.float32],
    ) -> NDArray[np.float32]:
        """Move each centroid to the mean of its members."""
        k, dimension = centroids.shape

        sums = np.zeros((k, dimension), dtype=np.float64)
        np.add.at(sums, labels, vectors)
        counts = np.bincount(labels, minlength=k)

        # Empty clusters keep their previous centroid
        new_centroids = centroids.copy()
        nonempty = counts > 0
        new_centroids[nonempty] = sums[nonempty] / counts[nonempty, None]

        empty = k - int(nonempty.sum())
        if empty:
            logger.debug("KMeans: %d empty clusters kept their centroid", empty)

        return new_centroids

    # =========================================================================
    # PREDICTION
    # =========================================================================

    def predict(self, vectors: ArrayLike) -> NDArray[np.int64]:
        """
        Assign vectors to the nearest trained centroid.

        Raises:
            IndexNotTrainedError: If ``train`` has not completed
            DimensionMismatchError: If the vectors have the wrong shape
        """
        centroids = self.centroids
        vectors = np.asarray(vectors, dtype=np.float32)

        if vectors.ndim == 1:
            vectors = vectors.reshape(1, -1)
        if vectors.ndim != 2 or vectors.shape[1] != centroids.shape[1]:
            raise DimensionMismatchError(
                f"Expected vectors of dimension {centroids.shape[1]}, "
                f"got shape {vectors.shape}"
            )

        labels, _, _ = assign_nearest(vectors, centroids, self._pool)
        return labels

    def cluster_sizes(self) -> List[int]:
        """Number of training vectors in each cluster after the final pass."""
        return np.bincount(self.labels, minlength=self.n_clusters).tolist()

    def _check_trained(self) -> None:
        if not self.is_trained:
            raise IndexNotTrainedError("KMeans has not been trained")

    def __repr__(self) -> str:
        return (
            f"KMeans(n_clusters={self.n_clusters}, "
            f"max_iterations={self.max_iterations}, state={self._state.value})"
        )
