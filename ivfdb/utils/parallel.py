"""
Worker pool for bulk-synchronous parallel steps.

The clustering assignment pass and the per-vector nearest-centroid pass
during a build are split into contiguous shards and fanned out over a
fixed set of threads. NumPy and SciPy release the GIL inside their
kernels, so shards do run concurrently.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar('T')

# Shards smaller than this are not worth a task of their own
MIN_SHARD_SIZE = 1024


def shard_ranges(n_items: int, n_shards: int) -> List[Tuple[int, int]]:
    """
    Split ``range(n_items)`` into at most ``n_shards`` contiguous ranges.

    Example:
        >>> shard_ranges(10, 3)
        [(0, 4), (4, 7), (7, 10)]
    """
    if n_items <= 0:
        return []

    n_shards = max(1, min(n_shards, n_items))
    base, extra = divmod(n_items, n_shards)

    ranges = []
    start = 0
    for i in range(n_shards):
        stop = start + base + (1 if i < extra else 0)
        ranges.append((start, stop))
        start = stop
    return ranges


class WorkerPool:
    """
    Fixed-size pool that runs independent closures behind a join barrier.

    Example:
        >>> with WorkerPool(num_workers=4) as pool:
        ...     results = pool.run_all([lambda: 1, lambda: 2])
        >>> results
        [1, 2]
    """

    def __init__(self, num_workers: Optional[int] = None):
        if num_workers is None:
            num_workers = min(32, os.cpu_count() or 1)
        if num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {num_workers}")

        self._num_workers = num_workers
        self._executor = ThreadPoolExecutor(
            max_workers=num_workers,
            thread_name_prefix="ivfdb-worker",
        )
        self._closed = False

    @property
    def num_workers(self) -> int:
        return self._num_workers

    def run_all(self, tasks: Sequence[Callable[[], T]]) -> List[T]:
        """
        Run every task and block until all of them complete.

        Results are returned in task order. If any task raises, the first
        failure (in task order) is re-raised once every task has finished.
        """
        if self._closed:
            raise RuntimeError("WorkerPool has been shut down")

        if len(tasks) == 1:
            return [tasks[0]()]

        futures = [self._executor.submit(task) for task in tasks]

        # Join barrier: wait for every task before surfacing errors
        errors = [f.exception() for f in futures]
        for error in errors:
            if error is not None:
                raise error

        return [f.result() for f in futures]

    def map_shards(
        self,
        fn: Callable[[int, int], T],
        n_items: int,
        n_shards: Optional[int] = None,
    ) -> List[T]:
        """
        Apply ``fn(start, stop)`` to contiguous shards of ``range(n_items)``.

        Args:
            fn: Shard function
            n_items: Total number of items
            n_shards: Number of shards (defaults to one per worker, capped
                so that no shard is smaller than MIN_SHARD_SIZE)

        Returns:
            Per-shard results in shard order
        """
        if n_shards is None:
            n_shards = max(1, min(self._num_workers, n_items // MIN_SHARD_SIZE))

        ranges = shard_ranges(n_items, n_shards)
        return self.run_all([
            (lambda start=start, stop=stop: fn(start, stop))
            for start, stop in ranges
        ])

    def shutdown(self, wait: bool = True) -> None:
        """Release the worker threads."""
        if not self._closed:
            self._executor.shutdown(wait=wait)
            self._closed = True

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()

    def __repr__(self) -> str:
        return f"WorkerPool(num_workers={self._num_workers})"
