"""
Core distance kernels.

All kernels work in float32 and use plain (non-compensated) accumulation
through NumPy's vectorized dot/einsum routines. Those routines sum in
fixed-width SIMD lanes with a scalar tail, so the summation order, and
hence the last bits of the result, depend on the CPU and the vector length.
Compare results with a relative tolerance (1e-4 is plenty), never with
exact equality. The one exact guarantee is ``l2_squared(a, a) == 0``: the
elementwise differences are all exactly zero.

Distance functions return smaller values for more similar vectors; the
inner product is a similarity (larger = more similar).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.spatial.distance import cdist

from ..core.exceptions import DimensionMismatchError


# Type aliases
Vector = NDArray[np.float32]
VectorBatch = NDArray[np.float32]


def _as_float32(x: ArrayLike) -> NDArray[np.float32]:
    return np.asarray(x, dtype=np.float32)


def _check_pair(a: Vector, b: Vector) -> None:
    if a.ndim != 1 or b.ndim != 1:
        raise DimensionMismatchError(
            f"Expected 1D vectors, got {a.ndim}D and {b.ndim}D"
        )
    if a.shape[0] != b.shape[0]:
        raise DimensionMismatchError(
            f"Vector lengths differ: {a.shape[0]} != {b.shape[0]}"
        )


def _check_batch(query: Vector, vectors: VectorBatch) -> None:
    if query.ndim != 1:
        raise DimensionMismatchError(f"Query must be 1D, got {query.ndim}D")
    if vectors.ndim != 2:
        raise DimensionMismatchError(f"Vectors must be 2D, got {vectors.ndim}D")
    if vectors.shape[1] != query.shape[0]:
        raise DimensionMismatchError(
            f"Query dimension {query.shape[0]} != vector dimension {vectors.shape[1]}"
        )


# =============================================================================
# SINGLE VECTOR KERNELS
# =============================================================================

def l2_squared(a: ArrayLike, b: ArrayLike) -> float:
    """
    Compute squared Euclidean distance between two vectors.

    Formula: sum((a_i - b_i)^2)

    Args:
        a: First vector
        b: Second vector

    Returns:
        Squared Euclidean distance (>= 0, smaller = more similar)

    Raises:
        DimensionMismatchError: If the lengths differ

    Example:
        >>> l2_squared([1.0, 2.0, 3.0], [4.0, 5.0, 6.0])
        27.0
    """
    a = _as_float32(a)
    b = _as_float32(b)
    _check_pair(a, b)

    diff = a - b
    return float(np.dot(diff, diff))


def inner_product(a: ArrayLike, b: ArrayLike) -> float:
    """
    Compute the inner (dot) product of two vectors.

    Formula: sum(a_i * b_i)

    Raises:
        DimensionMismatchError: If the lengths differ

    Example:
        >>> inner_product([1.0, 2.0, 3.0], [4.0, 5.0, 6.0])
        32.0
    """
    a = _as_float32(a)
    b = _as_float32(b)
    _check_pair(a, b)

    return float(np.dot(a, b))


# =============================================================================
# QUERY-TO-COLLECTION KERNELS
# =============================================================================

def l2_squared_batch(query: ArrayLike, vectors: ArrayLike) -> NDArray[np.float32]:
    """
    Squared Euclidean distance from one query to every row of ``vectors``.

    Computes the differences directly rather than expanding
    ||q||^2 + ||v||^2 - 2 q.v, so a row equal to the query scores exactly 0.

    Args:
        query: Query vector of shape (d,)
        vectors: Collection of shape (n, d)

    Returns:
        Distances of shape (n,)
    """
    query = _as_float32(query)
    vectors = _as_float32(vectors)
    _check_batch(query, vectors)

    diff = vectors - query
    return np.einsum("ij,ij->i", diff, diff)


def inner_product_batch(query: ArrayLike, vectors: ArrayLike) -> NDArray[np.float32]:
    """
    Inner product of one query with every row of ``vectors``.

    Returns:
        Products of shape (n,)
    """
    query = _as_float32(query)
    vectors = _as_float32(vectors)
    _check_batch(query, vectors)

    return vectors @ query


# =============================================================================
# PAIRWISE KERNELS
# =============================================================================

def pairwise_l2_squared(X: ArrayLike, Y: ArrayLike = None) -> NDArray[np.float64]:
    """
    Pairwise squared Euclidean distances.

    Uses scipy's direct ``sqeuclidean`` kernel (float64 accumulation),
    which keeps identical rows at exactly zero.

    Args:
        X: Array of shape (n, d)
        Y: Array of shape (m, d), or None to compute X vs X

    Returns:
        Distance matrix of shape (n, m)
    """
    X = _as_float32(X)
    Y = X if Y is None else _as_float32(Y)

    if X.ndim != 2 or Y.ndim != 2:
        raise DimensionMismatchError(
            f"Expected 2D arrays, got {X.ndim}D and {Y.ndim}D"
        )
    if X.shape[1] != Y.shape[1]:
        raise DimensionMismatchError(
            f"Dimension {X.shape[1]} != {Y.shape[1]}"
        )

    if len(X) == 0 or len(Y) == 0:
        return np.zeros((len(X), len(Y)), dtype=np.float64)

    return cdist(X, Y, metric="sqeuclidean")


def pairwise_inner_product(X: ArrayLike, Y: ArrayLike = None) -> NDArray[np.float32]:
    """
    Pairwise inner products, shape (n, m).
    """
    X = _as_float32(X)
    Y = X if Y is None else _as_float32(Y)

    if X.ndim != 2 or Y.ndim != 2 or X.shape[1] != Y.shape[1]:
        raise DimensionMismatchError(
            f"Incompatible shapes {X.shape} and {Y.shape}"
        )

    return X @ Y.T
