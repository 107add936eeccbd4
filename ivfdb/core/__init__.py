"""
Core components: errors, the vector store and the engine facade.
"""

from .exceptions import (
    ErrorKind,
    IVFDBError,
    VectorError,
    DimensionMismatchError,
    IndexOutOfRangeError,
    ValidationError,
    InvalidParameterError,
    ClusteringError,
    InsufficientDataError,
    IndexNotTrainedError,
    StorageError,
    SerializationError,
)
from .store import VectorStore
from .engine import VectorEngine

__all__ = [
    "ErrorKind",
    "IVFDBError",
    "VectorError",
    "DimensionMismatchError",
    "IndexOutOfRangeError",
    "ValidationError",
    "InvalidParameterError",
    "ClusteringError",
    "InsufficientDataError",
    "IndexNotTrainedError",
    "StorageError",
    "SerializationError",
    "VectorStore",
    "VectorEngine",
]
