"""
Flat, append-only vector store.

Vectors live in a single contiguous row-major float32 buffer and are
addressed by their 0-based insertion index.
"""

from __future__ import annotations

import numbers
from typing import Any, Dict, Iterator, Sequence, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .exceptions import DimensionMismatchError, IndexOutOfRangeError
from ..utils.validation import validate_dimension, validate_positive_int


class VectorStore:
    """
    Append-only storage for fixed-dimension float32 vectors.

    Identifiers are insertion indices: the first vector appended gets id 0,
    the next id 1, and so on. Nothing is ever deleted or overwritten, so a
    view returned by ``get`` stays valid even after the buffer grows (the
    view keeps the old buffer alive and its rows never change).

    Not internally synchronized: concurrent appends must be serialized by
    the caller.

    Example:
        >>> store = VectorStore(dimension=3)
        >>> store.append([1.0, 2.0, 3.0])
        0
        >>> store.get(0)
        array([1., 2., 3.], dtype=float32)
    """

    def __init__(
        self,
        dimension: int,
        initial_capacity: int = 1024,
        growth_factor: float = 2.0,
    ):
        """
        Initialize the store.

        Args:
            dimension: Vector dimension
            initial_capacity: Rows to pre-allocate
            growth_factor: Capacity multiplier when the buffer is full
        """
        self._dimension = validate_dimension(dimension)
        self._initial_capacity = validate_positive_int(
            "initial_capacity", initial_capacity
        )
        if growth_factor <= 1.0:
            raise ValueError(f"growth_factor must be > 1, got {growth_factor}")
        self._growth_factor = growth_factor

        self._vectors = np.zeros(
            (self._initial_capacity, self._dimension), dtype=np.float32
        )
        self._capacity = self._initial_capacity
        self._count = 0

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def dimension(self) -> int:
        """Vector dimension."""
        return self._dimension

    @property
    def count(self) -> int:
        """Number of stored vectors."""
        return self._count

    @property
    def capacity(self) -> int:
        """Allocated rows."""
        return self._capacity

    # =========================================================================
    # WRITES
    # =========================================================================

    def append(self, vector: ArrayLike) -> int:
        """
        Copy a vector into the store.

        Args:
            vector: Sequence of ``dimension`` floats

        Returns:
            The new vector's identifier

        Raises:
            DimensionMismatchError: If the vector has the wrong length
        """
        vector = self.validate_vector(vector)

        if self._count >= self._capacity:
            self._expand(self._count + 1)

        id = self._count
        self._vectors[id] = vector
        self._count += 1
        return id

    def append_batch(self, vectors: ArrayLike) -> range:
        """
        Append a batch of vectors.

        The whole batch is validated before anything is written.

        Args:
            vectors: Array of shape (n, dimension)

        Returns:
            Range of the new identifiers
        """
        vectors = self.validate_vectors(vectors)
        n = len(vectors)

        if self._count + n > self._capacity:
            self._expand(self._count + n)

        start = self._count
        self._vectors[start:start + n] = vectors
        self._count += n
        return range(start, start + n)

    def _expand(self, min_capacity: int) -> None:
        """Grow the buffer to hold at least ``min_capacity`` rows."""
        new_capacity = self._capacity
        while new_capacity < min_capacity:
            new_capacity = max(new_capacity + 1, int(new_capacity * self._growth_factor))

        new_vectors = np.zeros((new_capacity, self._dimension), dtype=np.float32)
        new_vectors[:self._count] = self._vectors[:self._count]

        self._vectors = new_vectors
        self._capacity = new_capacity

    # =========================================================================
    # READS
    # =========================================================================

    def get(self, id: int) -> NDArray[np.float32]:
        """
        Return a read-only view of one vector.

        Raises:
            IndexOutOfRangeError: If ``id`` is not in ``[0, count)``
        """
        id = self._check_id(id)
        view = self._vectors[id]
        view.flags.writeable = False
        return view

    def take(self, ids: Union[Sequence[int], NDArray]) -> NDArray[np.float32]:
        """
        Gather several vectors into a new (len(ids), dimension) array.

        Raises:
            IndexOutOfRangeError: If any id is out of range
        """
        ids = np.asarray(ids, dtype=np.int64)
        if ids.ndim != 1:
            raise IndexOutOfRangeError(f"ids must be 1D, got {ids.ndim}D")

        if len(ids) and (ids.min() < 0 or ids.max() >= self._count):
            bad = ids[(ids < 0) | (ids >= self._count)][0]
            raise IndexOutOfRangeError(
                f"Vector id {int(bad)} out of range [0, {self._count})"
            )

        return self._vectors[ids]

    def vectors(self) -> NDArray[np.float32]:
        """Read-only view of all stored vectors, shape (count, dimension)."""
        view = self._vectors[:self._count]
        view.flags.writeable = False
        return view

    def iter_vectors(self) -> Iterator[NDArray[np.float32]]:
        """Iterate over read-only views of every vector in id order."""
        for id in range(self._count):
            yield self.get(id)

    def memory_bytes(self) -> int:
        """Bytes allocated for the vector buffer."""
        return int(self._vectors.nbytes)

    def stats(self) -> Dict[str, Any]:
        """Storage statistics."""
        return {
            "dimension": self._dimension,
            "count": self._count,
            "capacity": self._capacity,
            "memory_bytes": self.memory_bytes(),
        }

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def _check_id(self, id: int) -> int:
        if isinstance(id, bool) or not isinstance(id, numbers.Integral):
            raise IndexOutOfRangeError(
                f"Vector id must be an integer, got {type(id).__name__}"
            )
        if id < 0 or id >= self._count:
            raise IndexOutOfRangeError(
                f"Vector id {id} out of range [0, {self._count})"
            )
        return int(id)

    def validate_vector(self, vector: ArrayLike) -> NDArray[np.float32]:
        """Validate and convert a single vector."""
        vector = np.asarray(vector, dtype=np.float32)

        if vector.ndim != 1:
            raise DimensionMismatchError(
                f"Vector must be 1D, got {vector.ndim}D"
            )

        if len(vector) != self._dimension:
            raise DimensionMismatchError(
                f"Vector dimension {len(vector)} != store dimension {self._dimension}"
            )

        return vector

    def validate_vectors(self, vectors: ArrayLike) -> NDArray[np.float32]:
        """Validate and convert a batch of vectors."""
        vectors = np.asarray(vectors, dtype=np.float32)

        # An empty list arrives as shape (0,)
        if vectors.size == 0 and vectors.ndim == 1:
            vectors = vectors.reshape(0, self._dimension)

        if vectors.ndim != 2:
            raise DimensionMismatchError(
                f"Vectors must be 2D, got {vectors.ndim}D"
            )

        if vectors.shape[1] != self._dimension:
            raise DimensionMismatchError(
                f"Vector dimension {vectors.shape[1]} != store dimension {self._dimension}"
            )

        return vectors

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return f"VectorStore(dimension={self._dimension}, count={self._count})"
