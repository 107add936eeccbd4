"""
Pytest fixtures for ivfdb tests.
"""

import pytest
import numpy as np

from ivfdb.core.store import VectorStore


@pytest.fixture
def dimension() -> int:
    """Default dimension for test vectors."""
    return 16


@pytest.fixture
def random_vector(dimension: int) -> np.ndarray:
    """Generate a random vector."""
    return np.random.randn(dimension).astype(np.float32)


@pytest.fixture
def random_vectors(dimension: int) -> np.ndarray:
    """Generate random vectors (500 vectors)."""
    np.random.seed(42)
    return np.random.randn(500, dimension).astype(np.float32)


@pytest.fixture
def store(dimension: int, random_vectors: np.ndarray) -> VectorStore:
    """A store holding random_vectors."""
    store = VectorStore(dimension)
    store.append_batch(random_vectors)
    return store


@pytest.fixture
def clustered_vectors(dimension: int) -> np.ndarray:
    """1000 vectors drawn around 10 well separated centers."""
    rng = np.random.RandomState(7)
    centers = rng.randn(10, dimension).astype(np.float32) * 10
    labels = np.arange(1000) % 10
    noise = rng.randn(1000, dimension).astype(np.float32)
    return (centers[labels] + noise).astype(np.float32)


@pytest.fixture
def clustered_store(dimension: int, clustered_vectors: np.ndarray) -> VectorStore:
    """A store holding clustered_vectors."""
    store = VectorStore(dimension)
    store.append_batch(clustered_vectors)
    return store


class FirstIdsRandomState:
    """
    Stand-in RandomState whose ``randint`` returns 0..size-1, so k-means
    seeds are the first k vectors (distinct, unlike a random draw).
    """

    def randint(self, low, high, size=None):
        return np.arange(low, low + size) % high


@pytest.fixture
def first_ids_rng() -> FirstIdsRandomState:
    return FirstIdsRandomState()
