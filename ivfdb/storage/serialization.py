"""
Serialization utilities for ivfdb storage.

Provides serialization/deserialization for:
- Vectors (raw float32 bytes)
- Log records (msgpack maps)
"""

from __future__ import annotations

from typing import Any, Dict

import msgpack
import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..core.exceptions import SerializationError


class VectorSerializer:
    """
    Raw binary vector serialization.

    A vector is stored as ``dimension`` little-endian float32 values with
    no header; the dimension travels alongside the bytes.
    """

    def __init__(self, dimension: int, dtype: np.dtype = np.float32):
        self.dimension = dimension
        self.dtype = np.dtype(dtype).newbyteorder("<")
        self.vector_size = dimension * self.dtype.itemsize

    def serialize(self, vector: ArrayLike) -> bytes:
        """Serialize a vector to bytes."""
        vector = np.asarray(vector)
        if vector.ndim != 1 or len(vector) != self.dimension:
            raise SerializationError(
                f"Vector shape {vector.shape} != ({self.dimension},)"
            )

        return vector.astype(self.dtype, copy=False).tobytes()

    def deserialize(self, data: bytes) -> NDArray[np.float32]:
        """Deserialize bytes to vector."""
        if len(data) != self.vector_size:
            raise SerializationError(
                f"Expected {self.vector_size} bytes for a {self.dimension}-d "
                f"vector, got {len(data)}"
            )

        return np.frombuffer(data, dtype=self.dtype).astype(np.float32)

    def serialize_batch(self, vectors: ArrayLike) -> bytes:
        """Serialize multiple vectors."""
        vectors = np.asarray(vectors)
        if vectors.ndim != 2 or vectors.shape[1] != self.dimension:
            raise SerializationError(
                f"Vectors shape {vectors.shape} != (n, {self.dimension})"
            )

        return vectors.astype(self.dtype, copy=False).tobytes()

    def deserialize_batch(self, data: bytes, count: int) -> NDArray[np.float32]:
        """Deserialize bytes to multiple vectors."""
        if len(data) != self.vector_size * count:
            raise SerializationError(
                f"Expected {self.vector_size * count} bytes for {count} vectors, "
                f"got {len(data)}"
            )

        vectors = np.frombuffer(data, dtype=self.dtype).astype(np.float32)
        return vectors.reshape(count, self.dimension)


def pack_record(record: Dict[str, Any]) -> bytes:
    """Serialize a log record with msgpack."""
    try:
        return msgpack.packb(record, use_bin_type=True)
    except (TypeError, ValueError, OverflowError) as e:
        raise SerializationError(f"Cannot serialize record: {e}") from e

