"""
IVF (Inverted File) Index Implementation.

IVF is a clustering-based approximate nearest neighbor algorithm that:
1. Partitions the vector space into clusters using k-means
2. Assigns each vector to its nearest cluster (inverted list)
3. At search time, only scans the clusters whose centroids are close to
   the query

Probing is adaptive: clusters are visited nearest-centroid first, and the
scan stops once the next centroid is more than ``probe_ratio`` farther
than the best one, or after ``max_nprobe`` clusters. Candidates go through
a bounded heap of ``k * refine_factor`` entries before the final top-k cut.

Reference:
    Jegou, H., Douze, M., & Schmid, C. (2011).
    "Product quantization for nearest neighbor search."
    IEEE transactions on pattern analysis and machine intelligence.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .base import IndexConfig, IndexStats, IndexType, SearchResult, validate_query
from .kmeans import ClusteringState, KMeans, assign_nearest
from .topk import TopKCollector
from ..core.exceptions import (
    DimensionMismatchError,
    IndexNotTrainedError,
    IndexOutOfRangeError,
)
from ..core.store import VectorStore
from ..distance import l2_squared_batch
from ..utils.logging import get_logger
from ..utils.parallel import WorkerPool
from ..utils.rwlock import RWLock
from ..utils.validation import (
    validate_k,
    validate_positive_int,
    validate_probe_ratio,
    validate_refine_factor,
)


logger = get_logger(__name__)

# Slack added to the probe threshold so a zero best distance still admits ties
PROBE_EPSILON = 1e-6


@dataclass
class IVFConfig(IndexConfig):
    """Configuration for IVF index."""

    # Number of clusters (inverted lists)
    n_lists: int = 100

    # K-means iterations
    max_iterations: int = 20

    # Probe clusters whose centroid distance is within (1 + probe_ratio) of the best
    probe_ratio: float = 0.2

    # Hard cap on probed clusters
    max_nprobe: int = 20

    # Candidate heap holds k * refine_factor entries
    refine_factor: int = 5

    # Seed for the RandomState used when build() is given none
    seed: int = 42

    def __post_init__(self):
        super().validate()
        validate_positive_int("n_lists", self.n_lists)
        validate_positive_int("max_iterations", self.max_iterations)
        validate_positive_int("max_nprobe", self.max_nprobe)
        self.probe_ratio = validate_probe_ratio(self.probe_ratio)
        validate_refine_factor(self.refine_factor)


class IVFIndex:
    """
    IVF (Inverted File) Index over a VectorStore.

    The index holds centroids and, per cluster, the ids of its member
    vectors; the vectors themselves stay in the store.

    Example:
        >>> store = VectorStore(dimension=128)
        >>> store.append_batch(vectors)
        >>> index = IVFIndex(dimension=128, n_lists=100)
        >>> index.build(store)
        >>>
        >>> results = index.search(query, store, k=10)
        >>>
        >>> # Trade speed for recall per query
        >>> results = index.search(query, store, k=10, max_nprobe=40)

    Parameters:
        n_lists: Number of clusters (default: 100)
            - Rule of thumb: sqrt(n_vectors) to 4*sqrt(n_vectors)

        probe_ratio / max_nprobe: Probe budget (default: 0.2 / 20)
            - Higher = better recall, slower search

    Complexity:
        - Build: O(n * n_lists * max_iterations)
        - Search: O(n_lists + (n / n_lists) * n_probed)
    """

    def __init__(
        self,
        dimension: int,
        n_lists: int = 100,
        max_iterations: int = 20,
        probe_ratio: float = 0.2,
        max_nprobe: int = 20,
        refine_factor: int = 5,
        seed: int = 42,
        pool: Optional[WorkerPool] = None,
        lock: Optional[RWLock] = None,
    ):
        """
        Initialize IVF index.

        Args:
            dimension: Vector dimension
            n_lists: Number of clusters
            max_iterations: K-means iteration budget
            probe_ratio: Default relative probe threshold
            max_nprobe: Default cap on probed clusters
            refine_factor: Default candidate heap multiplier
            seed: Seed used by build() when no RandomState is passed
            pool: Worker pool for training, assignment and batch search
            lock: Read-write lock guarding the index (shared with the
                owner of the store when given)
        """
        self.config = IVFConfig(
            dimension=dimension,
            n_lists=n_lists,
            max_iterations=max_iterations,
            probe_ratio=probe_ratio,
            max_nprobe=max_nprobe,
            refine_factor=refine_factor,
            seed=seed,
        )

        self._pool = pool
        self._lock = lock if lock is not None else RWLock()

        # Published together by build()
        self._centroids: Optional[NDArray[np.float32]] = None
        self._buckets: List[NDArray[np.int64]] = []
        self._indexed_count = 0

        # Training outcome
        self._train_state = ClusteringState.UNINITIALIZED
        self._train_iterations = 0
        self._inertia = 0.0
        self._build_time = 0.0

        # Statistics
        self._stats_lock = threading.Lock()
        self._n_searches = 0
        self._n_distance_computations = 0

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def index_type(self) -> IndexType:
        return IndexType.IVF

    @property
    def dimension(self) -> int:
        return self.config.dimension

    @property
    def n_lists(self) -> int:
        """Number of clusters."""
        return self.config.n_lists

    @property
    def is_built(self) -> bool:
        return self._centroids is not None

    @property
    def indexed_count(self) -> int:
        """Number of vectors covered by the last build."""
        return self._indexed_count

    @property
    def centroids(self) -> NDArray[np.float32]:
        """Cluster centroids, shape (n_lists, dimension), read-only."""
        self._check_built()
        return self._centroids

    @property
    def lock(self) -> RWLock:
        return self._lock

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(
        self,
        store: VectorStore,
        rng: Optional[np.random.RandomState] = None,
    ) -> None:
        """
        Train centroids on every vector in ``store`` and fill the buckets.

        Replaces any previous build. Holds the write lock throughout.

        Args:
            store: Vectors to index
            rng: Random state for seeding k-means (defaults to a fresh
                RandomState(config.seed), so rebuilds are reproducible)

        Raises:
            DimensionMismatchError: If the store dimension differs
            InsufficientDataError: If the store holds fewer than n_lists vectors
        """
        self._check_store(store)
        if rng is None:
            rng = np.random.RandomState(self.config.seed)

        with self._lock.write_locked():
            start = time.time()
            count = store.count

            kmeans = KMeans(
                n_clusters=self.config.n_lists,
                max_iterations=self.config.max_iterations,
                pool=self._pool,
            )
            centroids = kmeans.train(store, rng)

            labels, _, _ = assign_nearest(store.vectors(), centroids, self._pool)
            buckets = self._scatter(labels)

            self._centroids = centroids
            self._buckets = buckets
            self._indexed_count = count
            self._train_state = kmeans.state
            self._train_iterations = kmeans.n_iterations
            self._inertia = kmeans.inertia
            self._build_time = time.time() - start

        sizes = [len(b) for b in buckets]
        logger.info(
            "Built IVF index: %d vectors in %d lists (%s after %d iterations) "
            "in %.3fs, largest list %d, empty lists %d",
            count,
            self.config.n_lists,
            self._train_state.value,
            self._train_iterations,
            self._build_time,
            max(sizes),
            sizes.count(0),
        )

    def _scatter(self, labels: NDArray[np.int64]) -> List[NDArray[np.int64]]:
        """Group ids by label; each bucket lists its ids in ascending order."""
        order = np.argsort(labels, kind="stable").astype(np.int64)
        counts = np.bincount(labels, minlength=self.config.n_lists)
        buckets = np.split(order, np.cumsum(counts)[:-1])

        for bucket in buckets:
            bucket.flags.writeable = False
        return buckets

    # =========================================================================
    # SEARCH
    # =========================================================================

    def search(
        self,
        query: ArrayLike,
        store: VectorStore,
        k: int = 10,
        probe_ratio: Optional[float] = None,
        max_nprobe: Optional[int] = None,
        refine_factor: Optional[int] = None,
    ) -> List[SearchResult]:
        """
        Search for the approximate k nearest neighbors of ``query``.

        Args:
            query: Query vector
            store: Store the index was built from
            k: Number of results
            probe_ratio: Override the relative probe threshold
            max_nprobe: Override the cap on probed clusters
            refine_factor: Override the candidate heap multiplier

        Returns:
            At most k results sorted by squared L2 distance, ties by id

        Raises:
            DimensionMismatchError: If the query length is wrong
            InvalidParameterError: If any parameter is out of range
            IndexNotTrainedError: If build() has not been called
        """
        k = validate_k(k)
        probe_ratio, max_nprobe, refine_factor = self._resolve_params(
            probe_ratio, max_nprobe, refine_factor
        )
        query = validate_query(query, self.config.dimension)
        self._check_store(store)

        with self._lock.read_locked():
            self._check_built()
            results, scanned = self._search(
                query, store, k, probe_ratio, max_nprobe, refine_factor
            )

        self._record_searches(1, scanned)
        return results

    def _search(
        self,
        query: NDArray[np.float32],
        store: VectorStore,
        k: int,
        probe_ratio: float,
        max_nprobe: int,
        refine_factor: int,
    ):
        """Caller must hold the read lock. Returns (results, vectors scanned)."""
        probes = self._probe_order(query, probe_ratio, max_nprobe)

        collector = TopKCollector(k * refine_factor)
        scanned = 0
        for cluster_id in probes:
            ids = self._buckets[cluster_id]
            if len(ids) == 0:
                continue
            distances = l2_squared_batch(query, store.take(ids))
            collector.push_many(ids, distances)
            scanned += len(ids)

        return collector.results(limit=k), scanned

    def _record_searches(self, n_searches: int, scanned: int) -> None:
        with self._stats_lock:
            self._n_searches += n_searches
            self._n_distance_computations += n_searches * self.config.n_lists + scanned

    def probe_order(
        self,
        query: ArrayLike,
        probe_ratio: Optional[float] = None,
        max_nprobe: Optional[int] = None,
    ) -> List[int]:
        """
        Cluster ids a search with these parameters would scan, in scan order.
        """
        probe_ratio, max_nprobe, _ = self._resolve_params(probe_ratio, max_nprobe, None)
        query = validate_query(query, self.config.dimension)

        with self._lock.read_locked():
            self._check_built()
            return self._probe_order(query, probe_ratio, max_nprobe)

    def _probe_order(
        self,
        query: NDArray[np.float32],
        probe_ratio: float,
        max_nprobe: int,
    ) -> List[int]:
        """Caller must hold the read lock."""
        distances = l2_squared_batch(query, self._centroids)
        order = np.argsort(distances, kind="stable")

        if probe_ratio == float("inf"):
            threshold = float("inf")
        else:
            threshold = float(distances[order[0]]) * (1.0 + probe_ratio) + PROBE_EPSILON

        probes: List[int] = []
        for cluster_id in order.tolist():
            if len(probes) >= max_nprobe:
                break
            if probes and distances[cluster_id] > threshold:
                break
            probes.append(cluster_id)
        return probes

    def search_batch(
        self,
        queries: ArrayLike,
        store: VectorStore,
        k: int = 10,
        probe_ratio: Optional[float] = None,
        max_nprobe: Optional[int] = None,
        refine_factor: Optional[int] = None,
    ) -> List[List[SearchResult]]:
        """
        Search with multiple queries.

        Queries run concurrently on the worker pool when one was given. The
        read lock is held by the calling thread for the whole batch, so pool
        workers never wait on it.

        Args:
            queries: Array of query vectors (n, dimension)

        Returns:
            One result list per query, in query order
        """
        k = validate_k(k)
        probe_ratio, max_nprobe, refine_factor = self._resolve_params(
            probe_ratio, max_nprobe, refine_factor
        )
        queries = np.asarray(queries, dtype=np.float32)
        if queries.ndim != 2 or queries.shape[1] != self.config.dimension:
            raise DimensionMismatchError(
                f"Expected queries of shape (n, {self.config.dimension}), "
                f"got {queries.shape}"
            )
        self._check_store(store)

        tasks = [
            (lambda q=q: self._search(q, store, k, probe_ratio, max_nprobe, refine_factor))
            for q in queries
        ]

        with self._lock.read_locked():
            self._check_built()
            if self._pool is None or len(tasks) == 0:
                outcomes = [task() for task in tasks]
            else:
                outcomes = self._pool.run_all(tasks)

        self._record_searches(len(outcomes), sum(scanned for _, scanned in outcomes))
        return [results for results, _ in outcomes]

    def _resolve_params(
        self,
        probe_ratio: Optional[float],
        max_nprobe: Optional[int],
        refine_factor: Optional[int],
    ):
        if probe_ratio is None:
            probe_ratio = self.config.probe_ratio
        if max_nprobe is None:
            max_nprobe = self.config.max_nprobe
        if refine_factor is None:
            refine_factor = self.config.refine_factor

        return (
            validate_probe_ratio(probe_ratio),
            validate_positive_int("max_nprobe", max_nprobe),
            validate_refine_factor(refine_factor),
        )

    # =========================================================================
    # CLUSTER ACCESS
    # =========================================================================

    def get_bucket(self, cluster_id: int) -> NDArray[np.int64]:
        """
        Ids assigned to a cluster, ascending, read-only.

        Raises:
            IndexOutOfRangeError: If cluster_id is not in [0, n_lists)
        """
        with self._lock.read_locked():
            self._check_built()
            return self._buckets[self._check_cluster_id(cluster_id)]

    def get_centroid(self, cluster_id: int) -> NDArray[np.float32]:
        """Centroid of a cluster (read-only view)."""
        with self._lock.read_locked():
            self._check_built()
            return self._centroids[self._check_cluster_id(cluster_id)]

    def assign_cluster(self, vector: ArrayLike) -> int:
        """Cluster id whose centroid is nearest to ``vector``."""
        vector = validate_query(vector, self.config.dimension)

        with self._lock.read_locked():
            self._check_built()
            distances = l2_squared_batch(vector, self._centroids)
        return int(np.argmin(distances))

    def get_cluster_info(self) -> Dict[str, Any]:
        """
        Get detailed cluster information.

        Returns:
            Dictionary with per-cluster sizes, largest first
        """
        with self._lock.read_locked():
            self._check_built()
            sizes = [len(b) for b in self._buckets]

        clusters = sorted(
            ({"cluster_id": i, "size": s} for i, s in enumerate(sizes)),
            key=lambda c: c["size"],
            reverse=True,
        )

        return {
            "n_lists": self.config.n_lists,
            "total_vectors": sum(sizes),
            "cluster_sizes": clusters,
            "imbalance_ratio": max(sizes) / (np.mean(sizes) + 1e-8),
        }

    # =========================================================================
    # STATISTICS
    # =========================================================================

    def stats(self) -> IndexStats:
        """Get index statistics."""
        with self._lock.read_locked():
            cluster_sizes = [len(b) for b in self._buckets]
            centroid_memory = (
                self._centroids.nbytes if self._centroids is not None else 0
            )
            bucket_memory = sum(b.nbytes for b in self._buckets)
            indexed = self._indexed_count
            is_built = self.is_built

        with self._stats_lock:
            n_searches = self._n_searches
            n_distance_computations = self._n_distance_computations

        return IndexStats(
            index_type=self.index_type.value,
            dimension=self.config.dimension,
            vector_count=indexed,
            memory_bytes=int(centroid_memory + bucket_memory),
            is_trained=is_built,
            build_time_seconds=self._build_time,
            extra={
                "n_lists": self.config.n_lists,
                "probe_ratio": self.config.probe_ratio,
                "max_nprobe": self.config.max_nprobe,
                "refine_factor": self.config.refine_factor,
                "training_state": self._train_state.value,
                "training_iterations": self._train_iterations,
                "inertia": self._inertia,
                "cluster_sizes": {
                    "min": min(cluster_sizes) if cluster_sizes else 0,
                    "max": max(cluster_sizes) if cluster_sizes else 0,
                    "mean": float(np.mean(cluster_sizes)) if cluster_sizes else 0.0,
                    "std": float(np.std(cluster_sizes)) if cluster_sizes else 0.0,
                },
                "empty_clusters": sum(1 for s in cluster_sizes if s == 0),
                "searches": n_searches,
                "distance_computations": n_distance_computations,
            },
        )

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def _check_built(self) -> None:
        if self._centroids is None:
            raise IndexNotTrainedError("Index must be built before searching")

    def _check_store(self, store: VectorStore) -> None:
        if store.dimension != self.config.dimension:
            raise DimensionMismatchError(
                f"Store dimension {store.dimension} != index dimension "
                f"{self.config.dimension}"
            )

    def _check_cluster_id(self, cluster_id: int) -> int:
        if not (0 <= cluster_id < self.config.n_lists):
            raise IndexOutOfRangeError(
                f"Cluster id {cluster_id} out of range [0, {self.config.n_lists})"
            )
        return int(cluster_id)

    def __repr__(self) -> str:
        return (
            f"IVFIndex(dimension={self.config.dimension}, "
            f"n_lists={self.config.n_lists}, built={self.is_built})"
        )
