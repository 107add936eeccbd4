"""
Unit tests for VectorEngine.
"""

import pytest
import numpy as np
from numpy.testing import assert_array_equal

from config import Settings
from ivfdb import VectorEngine
from ivfdb.core.exceptions import (
    DimensionMismatchError,
    IndexNotTrainedError,
    IndexOutOfRangeError,
    InsufficientDataError,
    InvalidParameterError,
    StorageError,
)
from ivfdb.storage import OP_ADD_BATCH, OP_ADD_VECTOR, WriteAheadLog


@pytest.fixture
def engine(dimension):
    with VectorEngine(dimension=dimension, n_lists=10, num_threads=2) as engine:
        yield engine


@pytest.fixture
def wal_path(tmp_path):
    return tmp_path / "engine.wal"


class TestEngineWrites:
    """Append tests."""

    def test_add_returns_sequential_ids(self, engine, random_vectors):
        assert engine.add(random_vectors[0]) == 0
        assert engine.add(random_vectors[1]) == 1
        assert engine.count == 2

    def test_add_batch(self, engine, random_vectors):
        ids = engine.add_batch(random_vectors[:50])

        assert ids == range(0, 50)
        assert engine.count == 50
        assert_array_equal(engine.get(49), random_vectors[49])

    def test_add_wrong_dimension(self, engine):
        with pytest.raises(DimensionMismatchError):
            engine.add(np.zeros(3))
        assert engine.count == 0

    def test_add_batch_is_all_or_nothing(self, engine, dimension):
        with pytest.raises(DimensionMismatchError):
            engine.add_batch(np.zeros((5, dimension + 1)))
        assert engine.count == 0

    def test_get_returns_copy(self, engine, random_vectors):
        engine.add(random_vectors[0])

        vector = engine.get(0)
        vector[:] = 0

        assert_array_equal(engine.get(0), random_vectors[0])

    def test_get_out_of_range(self, engine):
        with pytest.raises(IndexOutOfRangeError):
            engine.get(0)

    def test_unindexed_count(self, engine, clustered_vectors):
        engine.add_batch(clustered_vectors)
        engine.build()
        engine.add(clustered_vectors[0])

        assert engine.unindexed_count == 1


class TestEngineSearch:
    """Search tests."""

    @pytest.fixture
    def built(self, engine, clustered_vectors):
        engine.add_batch(clustered_vectors)
        engine.build()
        return engine

    def test_search_before_build(self, engine, random_vectors, random_vector):
        engine.add_batch(random_vectors)

        with pytest.raises(IndexNotTrainedError):
            engine.search(random_vector)

    def test_build_needs_n_lists_vectors(self, engine, random_vectors):
        engine.add_batch(random_vectors[:5])

        with pytest.raises(InsufficientDataError):
            engine.build()
        assert not engine.is_built

    def test_search_finds_stored_vector(self, built, clustered_vectors):
        results = built.search(clustered_vectors[321], top_k=5)

        assert results[0].id == 321
        assert results[0].distance == 0.0
        assert len(results) == 5

    def test_search_parameters_validated(self, built, random_vector):
        with pytest.raises(InvalidParameterError):
            built.search(random_vector, top_k=0)
        with pytest.raises(InvalidParameterError):
            built.search(random_vector, probe_ratio=-1.0)

    def test_unbounded_search_parameters(self, built, random_vector):
        exhaustive = built.search(
            random_vector, top_k=500_000, probe_ratio=float("inf"), max_nprobe=10
        )

        assert len(exhaustive) == built.count
        assert len(built.search_exact(random_vector, top_k=500_000)) == built.count

    def test_search_batch(self, built, clustered_vectors):
        results = built.search_batch(clustered_vectors[[3, 30]], top_k=1)

        assert [r[0].id for r in results] == [3, 30]

    def test_vectors_added_after_build_not_searchable(self, built, dimension):
        far = np.full(dimension, 1000.0, dtype=np.float32)
        new_id = built.add(far)

        assert all(r.id != new_id for r in built.search(far, top_k=5))
        assert built.search_exact(far, top_k=1)[0].id == new_id

        built.build()
        assert built.search(far, top_k=1)[0].id == new_id

    def test_search_exact_matches_ground_truth(self, built, clustered_vectors, random_vector):
        results = built.search_exact(random_vector, top_k=3)

        distances = np.sum((clustered_vectors - random_vector) ** 2, axis=1)
        assert [r.id for r in results] == np.argsort(distances)[:3].tolist()


class TestEngineRecovery:
    """Write-ahead log and recovery tests."""

    def test_adds_are_logged(self, dimension, random_vectors, wal_path):
        with VectorEngine(dimension=dimension, n_lists=4, wal_path=wal_path) as engine:
            engine.add(random_vectors[0])
            engine.add_batch(random_vectors[1:3])

            assert engine.wal.next_seq == 2

        with WriteAheadLog(wal_path) as wal:
            records = list(wal.replay())
        assert [r.op for r in records] == [OP_ADD_VECTOR, OP_ADD_BATCH]
        assert_array_equal(np.concatenate([r.vectors() for r in records]), random_vectors[:3])

    def test_empty_batch_is_not_logged(self, dimension, wal_path):
        with VectorEngine(dimension=dimension, n_lists=4, wal_path=wal_path) as engine:
            assert engine.add_batch([]) == range(0, 0)
            assert engine.wal.next_seq == 0

    def test_failed_log_write_stores_nothing(self, dimension, random_vectors, wal_path, monkeypatch):
        with VectorEngine(dimension=dimension, n_lists=4, wal_path=wal_path) as engine:
            def fail(vectors):
                raise StorageError("disk full")

            monkeypatch.setattr(engine.wal, "append_batch", fail)

            with pytest.raises(StorageError):
                engine.add_batch(random_vectors[:5])
            assert engine.count == 0

    def test_rejected_add_is_not_logged(self, dimension, wal_path):
        with VectorEngine(dimension=dimension, n_lists=4, wal_path=wal_path) as engine:
            with pytest.raises(DimensionMismatchError):
                engine.add_batch(np.zeros((2, dimension + 1)))

            assert engine.wal.next_seq == 0

    def test_recover_rebuilds_once(self, dimension, clustered_vectors, wal_path):
        with VectorEngine(dimension=dimension, n_lists=10, wal_path=wal_path) as engine:
            engine.add_batch(clustered_vectors[:200])

        with VectorEngine(dimension=dimension, n_lists=10, wal_path=wal_path) as engine:
            restored = engine.recover()

            assert restored == 200
            assert engine.count == 200
            assert engine.is_built
            assert engine.index.indexed_count == 200
            assert_array_equal(engine.get(199), clustered_vectors[199])
            assert engine.search(clustered_vectors[7], top_k=1)[0].id == 7

    def test_recover_too_few_vectors_stays_unbuilt(self, dimension, random_vectors, wal_path):
        with VectorEngine(dimension=dimension, n_lists=10, wal_path=wal_path) as engine:
            engine.add_batch(random_vectors[:4])

        with VectorEngine(dimension=dimension, n_lists=10, wal_path=wal_path) as engine:
            assert engine.recover() == 4
            assert engine.count == 4
            assert not engine.is_built

    def test_recover_skips_unknown_ops(self, dimension, random_vectors, wal_path):
        with WriteAheadLog(wal_path) as wal:
            wal.append_vector(random_vectors[0])
            wal.append("compact", {})
            wal.append_vector(random_vectors[1])

        with VectorEngine(dimension=dimension, n_lists=10, wal_path=wal_path) as engine:
            assert engine.recover() == 2
            assert_array_equal(engine.get(1), random_vectors[1])

    def test_recover_does_not_relog(self, dimension, random_vectors, wal_path):
        with VectorEngine(dimension=dimension, n_lists=10, wal_path=wal_path) as engine:
            engine.add(random_vectors[0])
            engine.add_batch(random_vectors[1:3])

        with VectorEngine(dimension=dimension, n_lists=10, wal_path=wal_path) as engine:
            assert engine.recover() == 3
            assert engine.wal.next_seq == 2
            assert_array_equal(engine.get(2), random_vectors[2])

    def test_recover_requires_empty_store(self, dimension, random_vectors, wal_path):
        with VectorEngine(dimension=dimension, n_lists=10, wal_path=wal_path) as engine:
            engine.add(random_vectors[0])

            with pytest.raises(StorageError):
                engine.recover()

    def test_recover_dimension_mismatch(self, dimension, wal_path):
        with WriteAheadLog(wal_path) as wal:
            wal.append_vector(np.zeros(dimension + 2))

        with VectorEngine(dimension=dimension, n_lists=10, wal_path=wal_path) as engine:
            with pytest.raises(StorageError):
                engine.recover()

    def test_recover_without_wal(self, engine):
        with pytest.raises(StorageError):
            engine.recover()

    def test_bad_record_leaves_store_empty(self, wal_path):
        with WriteAheadLog(wal_path) as wal:
            wal.append_vector([1.0, 2.0])
            wal.append_vector([1.0, 2.0, 3.0])

        with VectorEngine(dimension=2, n_lists=1, wal_path=wal_path) as engine:
            for _ in range(2):
                with pytest.raises(StorageError, match="record 1"):
                    engine.recover()
                assert engine.count == 0

    def test_corrupt_payload_leaves_store_empty(self, wal_path):
        with WriteAheadLog(wal_path) as wal:
            wal.append_vector([1.0, 2.0])
            wal.append(OP_ADD_BATCH, {"dimension": 2, "count": 3, "vectors": b"\x00" * 8})

        with VectorEngine(dimension=2, n_lists=1, wal_path=wal_path) as engine:
            with pytest.raises(StorageError):
                engine.recover()
            assert engine.count == 0

    def test_checkpoint_compacts_log(self, dimension, random_vectors, wal_path):
        with VectorEngine(dimension=dimension, n_lists=4, wal_path=wal_path) as engine:
            for vector in random_vectors[:10]:
                engine.add(vector)
            engine.checkpoint()

            assert engine.wal.next_seq == 1
            engine.add(random_vectors[10])

        with WriteAheadLog(wal_path) as wal:
            records = list(wal.replay())
        assert [(r.seq, r.op) for r in records] == [(0, OP_ADD_BATCH), (1, OP_ADD_VECTOR)]

        with VectorEngine(dimension=dimension, n_lists=4, wal_path=wal_path) as engine:
            assert engine.recover() == 11
            assert_array_equal(engine.store.vectors(), random_vectors[:11])

    def test_checkpoint_empty_store_clears_log(self, dimension, random_vectors, wal_path):
        with VectorEngine(dimension=dimension, n_lists=4, wal_path=wal_path) as engine:
            engine.checkpoint()

            assert engine.wal.next_seq == 0
        assert wal_path.stat().st_size == 0

    def test_checkpoint_without_wal(self, engine):
        with pytest.raises(StorageError):
            engine.checkpoint()


class TestEngineStats:
    """Statistics and construction tests."""

    def test_stats(self, engine, clustered_vectors):
        engine.add_batch(clustered_vectors)
        engine.build()
        engine.add(clustered_vectors[0])

        stats = engine.stats()

        assert stats["count"] == 1001
        assert stats["indexed"] == 1000
        assert stats["unindexed"] == 1
        assert stats["num_threads"] == 2
        assert stats["index"]["n_lists"] == 10
        assert stats["wal"]["enabled"] is False

    def test_from_settings(self, tmp_path):
        settings = Settings.from_dict({
            "dimension": 8,
            "num_threads": 1,
            "index": {"n_lists": 3, "probe_ratio": 0.5},
            "wal": {"enabled": True, "path": str(tmp_path / "s.wal")},
        })

        with VectorEngine.from_settings(settings) as engine:
            assert engine.dimension == 8
            assert engine.index.n_lists == 3
            assert engine.index.config.probe_ratio == 0.5
            assert engine.wal is not None

    def test_invalid_construction(self):
        with pytest.raises(InvalidParameterError):
            VectorEngine(dimension=0)
        with pytest.raises(InvalidParameterError):
            VectorEngine(dimension=4, n_lists=0)
