"""
Vector engine: the store, the IVF index and the write-ahead log behind one
object.

All mutations and searches go through a single read-write lock shared
with the index: appends and builds are exclusive, searches are shared.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
from pathlib import Path

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .exceptions import StorageError
from .store import VectorStore
from ..index import FlatIndex, IVFIndex, SearchResult
from ..storage import VECTOR_OPS, WriteAheadLog
from ..utils.logging import get_logger
from ..utils.parallel import WorkerPool
from ..utils.rwlock import RWLock


logger = get_logger(__name__)


class VectorEngine:
    """
    In-memory approximate nearest neighbor engine.

    Example:
        >>> engine = VectorEngine(dimension=128, n_lists=64)
        >>> engine.add_batch(vectors)
        range(0, 10000)
        >>> engine.build()
        >>> results = engine.search(query, top_k=10)
        >>> results[0].id, results[0].distance
        (42, 0.173)

    Vectors added after a build are stored (and logged) but are not
    searchable until the next ``build()``.
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
        num_threads: Optional[int] = None,
        wal_path: Optional[Union[str, Path]] = None,
        wal_sync: bool = False,
        initial_capacity: int = 1024,
    ):
        """
        Initialize the engine.

        Args:
            dimension: Vector dimension
            n_lists: Number of IVF clusters
            max_iterations: K-means iteration budget
            probe_ratio: Default relative probe threshold
            max_nprobe: Default cap on probed clusters
            refine_factor: Default candidate heap multiplier
            seed: Seed for the build's RandomState
            num_threads: Worker threads (None = one per CPU)
            wal_path: Write-ahead log file; no logging when None
            wal_sync: fsync every log record
            initial_capacity: Rows pre-allocated by the store
        """
        self._store = VectorStore(dimension, initial_capacity=initial_capacity)
        self._lock = RWLock()
        self._pool = WorkerPool(num_threads)
        self._index = IVFIndex(
            dimension=dimension,
            n_lists=n_lists,
            max_iterations=max_iterations,
            probe_ratio=probe_ratio,
            max_nprobe=max_nprobe,
            refine_factor=refine_factor,
            seed=seed,
            pool=self._pool,
            lock=self._lock,
        )
        self._flat = FlatIndex(dimension)
        self._wal = WriteAheadLog(wal_path, sync=wal_sync) if wal_path else None

    @classmethod
    def from_settings(cls, settings) -> "VectorEngine":
        """
        Create an engine from a ``config.Settings`` object.
        """
        index = settings.index
        wal = settings.wal
        return cls(
            dimension=settings.dimension,
            n_lists=index.n_lists,
            max_iterations=index.max_iterations,
            probe_ratio=index.probe_ratio,
            max_nprobe=index.max_nprobe,
            refine_factor=index.refine_factor,
            seed=index.seed,
            num_threads=settings.num_threads,
            wal_path=wal.path if wal.enabled else None,
            wal_sync=wal.sync,
        )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def dimension(self) -> int:
        return self._store.dimension

    @property
    def count(self) -> int:
        """Number of stored vectors."""
        return self._store.count

    @property
    def store(self) -> VectorStore:
        return self._store

    @property
    def index(self) -> IVFIndex:
        return self._index

    @property
    def wal(self) -> Optional[WriteAheadLog]:
        return self._wal

    @property
    def is_built(self) -> bool:
        return self._index.is_built

    @property
    def unindexed_count(self) -> int:
        """Vectors added since the last build."""
        with self._lock.read_locked():
            return self._store.count - self._index.indexed_count

    # =========================================================================
    # WRITES
    # =========================================================================

    def add(self, vector: ArrayLike) -> int:
        """
        Store a vector, logging it first when a WAL is configured.

        Returns:
            The new vector's id

        Raises:
            DimensionMismatchError: If the vector has the wrong length
            StorageError: If the log write fails (the vector is not stored)
        """
        vector = self._store.validate_vector(vector)

        with self._lock.write_locked():
            if self._wal is not None:
                self._wal.append_vector(vector)
            return self._store.append(vector)

    def add_batch(self, vectors: ArrayLike) -> range:
        """
        Store a batch of vectors, all or nothing.

        The whole batch is validated first and logged as a single record,
        so a failed or interrupted write never leaves part of it behind.

        Returns:
            Range of the new ids
        """
        vectors = self._store.validate_vectors(vectors)

        with self._lock.write_locked():
            if self._wal is not None and len(vectors):
                self._wal.append_batch(vectors)
            ids = self._store.append_batch(vectors)

        logger.debug("Added %d vectors (ids %d..%d)", len(ids), ids.start, ids.stop - 1)
        return ids

    def build(self, rng: Optional[np.random.RandomState] = None) -> None:
        """
        (Re)build the IVF index over every stored vector.

        Raises:
            InsufficientDataError: If fewer than n_lists vectors are stored
        """
        self._index.build(self._store, rng)

    # =========================================================================
    # READS
    # =========================================================================

    def search(
        self,
        query: ArrayLike,
        top_k: int = 10,
        probe_ratio: Optional[float] = None,
        max_nprobe: Optional[int] = None,
        refine_factor: Optional[int] = None,
    ) -> List[SearchResult]:
        """
        Approximate top-k search.

        Returns:
            At most top_k results, nearest first

        Raises:
            DimensionMismatchError: If the query length is wrong
            InvalidParameterError: If a search parameter is out of range
            IndexNotTrainedError: If build() has not been called
        """
        return self._index.search(
            query,
            self._store,
            k=top_k,
            probe_ratio=probe_ratio,
            max_nprobe=max_nprobe,
            refine_factor=refine_factor,
        )

    def search_batch(
        self,
        queries: ArrayLike,
        top_k: int = 10,
        probe_ratio: Optional[float] = None,
        max_nprobe: Optional[int] = None,
        refine_factor: Optional[int] = None,
    ) -> List[List[SearchResult]]:
        """Approximate top-k search for several queries."""
        return self._index.search_batch(
            queries,
            self._store,
            k=top_k,
            probe_ratio=probe_ratio,
            max_nprobe=max_nprobe,
            refine_factor=refine_factor,
        )

    def search_exact(self, query: ArrayLike, top_k: int = 10) -> List[SearchResult]:
        """Brute-force top-k over every stored vector, indexed or not."""
        with self._lock.read_locked():
            return self._flat.search(query, self._store, k=top_k)

    def get(self, id: int) -> NDArray[np.float32]:
        """
        Copy of a stored vector.

        Raises:
            IndexOutOfRangeError: If the id is not in [0, count)
        """
        with self._lock.read_locked():
            return np.array(self._store.get(id))

    # =========================================================================
    # RECOVERY
    # =========================================================================

    def recover(self) -> int:
        """
        Reload vectors from the write-ahead log, then build once.

        Every record is decoded and checked before anything is stored, so a
        bad record leaves the store empty and recovery can be retried. The
        index is built only when at least ``n_lists`` vectors were
        recovered; otherwise it is left unbuilt.

        Returns:
            Number of vectors restored

        Raises:
            StorageError: If no WAL is configured, the store is not empty,
                or a record is corrupt or does not match the engine's
                dimension
        """
        if self._wal is None:
            raise StorageError("No write-ahead log configured")

        with self._lock.write_locked():
            if self._store.count:
                raise StorageError(
                    f"Recovery needs an empty store, found {self._store.count} vectors"
                )

            batches = []
            for record in self._wal.replay():
                if record.op not in VECTOR_OPS:
                    logger.warning(
                        "Skipping WAL record %d with unknown op '%s'",
                        record.seq,
                        record.op,
                    )
                    continue

                vectors = record.vectors()
                if vectors.shape[1] != self.dimension:
                    raise StorageError(
                        f"WAL record {record.seq}: dimension {vectors.shape[1]} "
                        f"!= engine dimension {self.dimension}"
                    )
                batches.append(vectors)

            if batches:
                self._store.append_batch(np.concatenate(batches))
            restored = self._store.count

        logger.info("Recovered %d vectors from %s", restored, self._wal.path)

        if restored >= self._index.n_lists:
            self.build()
        else:
            logger.warning(
                "Recovered %d vectors, fewer than n_lists=%d; index not built",
                restored,
                self._index.n_lists,
            )

        return restored

    def checkpoint(self) -> None:
        """
        Compact the write-ahead log to one snapshot of the stored vectors.

        Afterwards the log holds a single ``add_batch`` record (or nothing
        for an empty store), so the next recovery reads one record instead
        of the whole append history.

        Raises:
            StorageError: If no WAL is configured or the rewrite fails
        """
        if self._wal is None:
            raise StorageError("No write-ahead log configured")

        with self._lock.write_locked():
            self._wal.clear(snapshot=self._store.vectors())
            count = self._store.count

        logger.info("Checkpointed %d vectors to %s", count, self._wal.path)

    # =========================================================================
    # STATISTICS & LIFECYCLE
    # =========================================================================

    def stats(self) -> Dict[str, Any]:
        """Engine statistics."""
        with self._lock.read_locked():
            store_stats = self._store.stats()
            indexed = self._index.indexed_count

        return {
            "dimension": self.dimension,
            "count": store_stats["count"],
            "indexed": indexed,
            "unindexed": store_stats["count"] - indexed,
            "num_threads": self._pool.num_workers,
            "store": store_stats,
            "index": self._index.stats().to_dict(),
            "wal": {
                "enabled": self._wal is not None,
                "path": str(self._wal.path) if self._wal is not None else None,
                "next_seq": self._wal.next_seq if self._wal is not None else None,
            },
        }

    def close(self) -> None:
        """Close the log and stop the worker threads."""
        if self._wal is not None:
            self._wal.close()
        self._pool.shutdown()

    def __enter__(self) -> "VectorEngine":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"VectorEngine(dimension={self.dimension}, count={self.count}, "
            f"built={self.is_built})"
        )
