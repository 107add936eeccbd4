"""
Unit tests for FlatIndex.
"""

import pytest
import numpy as np

from ivfdb.core.store import VectorStore
from ivfdb.core.exceptions import DimensionMismatchError, InvalidParameterError
from ivfdb.index import FlatIndex


class TestFlatIndex:
    """Brute-force search tests."""

    def test_create_index(self):
        index = FlatIndex(dimension=8)

        assert index.dimension == 8
        assert index.metric == "l2"

    def test_exact_l2(self, store, random_vectors, random_vector):
        index = FlatIndex(dimension=store.dimension)

        results = index.search(random_vector, store, k=10)

        distances = np.sum((random_vectors - random_vector) ** 2, axis=1)
        expected = np.argsort(distances, kind="stable")[:10].tolist()
        assert [r.id for r in results] == expected

    def test_finds_self(self, store, random_vectors):
        index = FlatIndex(dimension=store.dimension)

        results = index.search(random_vectors[17], store, k=1)

        assert results[0].id == 17
        assert results[0].distance == 0.0

    def test_inner_product(self):
        store = VectorStore(dimension=2)
        store.append_batch([[1, 0], [3, 0], [0, 5], [2, 0]])
        index = FlatIndex(dimension=2, metric="ip")

        results = index.search([1, 0], store, k=3)

        assert [r.id for r in results] == [1, 3, 0]
        assert [r.distance for r in results] == [3.0, 2.0, 1.0]

    def test_small_batches_match_one_batch(self, store, random_vector):
        one = FlatIndex(dimension=store.dimension)
        many = FlatIndex(dimension=store.dimension, batch_size=7)

        assert one.search(random_vector, store, k=25) == many.search(
            random_vector, store, k=25
        )

    def test_k_larger_than_count(self):
        store = VectorStore(dimension=3)
        store.append_batch(np.eye(3))
        index = FlatIndex(dimension=3)

        assert len(index.search([0, 0, 0], store, k=10)) == 3
        assert len(index.search([0, 0, 0], store, k=1_000_000)) == 3

    def test_empty_store(self):
        index = FlatIndex(dimension=3)

        assert index.search([0, 0, 0], VectorStore(dimension=3), k=5) == []

    def test_search_batch(self, store, random_vectors):
        index = FlatIndex(dimension=store.dimension)

        batched = index.search_batch(random_vectors[:3], store, k=2)

        assert [r[0].id for r in batched] == [0, 1, 2]

    def test_dimension_errors(self, store):
        index = FlatIndex(dimension=store.dimension)

        with pytest.raises(DimensionMismatchError):
            index.search(np.zeros(3), store)
        with pytest.raises(DimensionMismatchError):
            FlatIndex(dimension=4).search(np.zeros(4), store)

    def test_invalid_k(self, store, random_vector):
        with pytest.raises(InvalidParameterError):
            FlatIndex(dimension=store.dimension).search(random_vector, store, k=0)

    def test_unknown_metric(self):
        with pytest.raises(InvalidParameterError):
            FlatIndex(dimension=4, metric="cosine")

    def test_stats(self, store):
        stats = FlatIndex(dimension=store.dimension).stats(store)

        assert stats.index_type == "flat"
        assert stats.vector_count == store.count
        assert stats.is_trained
