"""
Unit tests for the worker pool.
"""

import threading

import pytest

from ivfdb.utils.parallel import MIN_SHARD_SIZE, WorkerPool, shard_ranges


class TestShardRanges:
    """Shard splitting tests."""

    def test_even_split(self):
        assert shard_ranges(9, 3) == [(0, 3), (3, 6), (6, 9)]

    def test_uneven_split(self):
        assert shard_ranges(10, 3) == [(0, 4), (4, 7), (7, 10)]

    def test_more_shards_than_items(self):
        assert shard_ranges(2, 5) == [(0, 1), (1, 2)]

    def test_empty(self):
        assert shard_ranges(0, 4) == []

    def test_covers_range_contiguously(self):
        ranges = shard_ranges(1001, 7)

        assert ranges[0][0] == 0
        assert ranges[-1][1] == 1001
        for (_, stop), (start, _) in zip(ranges, ranges[1:]):
            assert stop == start


class TestWorkerPool:
    """Worker pool tests."""

    def test_run_all_preserves_order(self):
        with WorkerPool(num_workers=4) as pool:
            results = pool.run_all([lambda i=i: i * i for i in range(10)])

        assert results == [i * i for i in range(10)]

    def test_run_all_uses_threads(self):
        seen = set()
        barrier = threading.Barrier(2, timeout=5)

        def task():
            barrier.wait()
            seen.add(threading.current_thread().name)

        with WorkerPool(num_workers=2) as pool:
            pool.run_all([task, task])

        assert len(seen) == 2

    def test_first_error_raised_after_all_finish(self):
        finished = []

        def ok():
            finished.append(True)
            return 1

        def fail(message):
            raise ValueError(message)

        with WorkerPool(num_workers=2) as pool:
            with pytest.raises(ValueError, match="first"):
                pool.run_all([ok, lambda: fail("first"), lambda: fail("second"), ok])

        assert len(finished) == 2

    def test_map_shards(self):
        with WorkerPool(num_workers=3) as pool:
            results = pool.map_shards(lambda start, stop: (start, stop), 30, n_shards=3)

        assert results == [(0, 10), (10, 20), (20, 30)]

    def test_map_shards_small_input_is_one_shard(self):
        with WorkerPool(num_workers=8) as pool:
            results = pool.map_shards(lambda start, stop: stop - start, MIN_SHARD_SIZE)

        assert results == [MIN_SHARD_SIZE]

    def test_shutdown(self):
        pool = WorkerPool(num_workers=1)
        pool.shutdown()

        with pytest.raises(RuntimeError):
            pool.run_all([lambda: 1, lambda: 2])

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            WorkerPool(num_workers=0)

    def test_default_worker_count(self):
        with WorkerPool() as pool:
            assert pool.num_workers >= 1
