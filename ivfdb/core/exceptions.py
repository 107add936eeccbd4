"""
Custom exceptions for ivfdb.

Every exception carries an ``ErrorKind`` so callers (and the HTTP layer)
can branch on the kind of contract violation without matching on classes.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Categories of errors raised by the engine."""
    DIMENSION_MISMATCH = "dimension_mismatch"
    INSUFFICIENT_DATA = "insufficient_data"
    INDEX_OUT_OF_RANGE = "index_out_of_range"
    INVALID_PARAMETER = "invalid_parameter"
    NOT_TRAINED = "not_trained"
    STORAGE = "storage"


class IVFDBError(Exception):
    """Base exception for ivfdb."""
    kind: ErrorKind = ErrorKind.INVALID_PARAMETER


class VectorError(IVFDBError):
    """Error related to vector operations."""
    pass


class DimensionMismatchError(VectorError, ValueError):
    """Vector length doesn't match the store or index dimension."""
    kind = ErrorKind.DIMENSION_MISMATCH


class IndexOutOfRangeError(VectorError, IndexError):
    """Vector identifier (or cluster id) outside the valid range."""
    kind = ErrorKind.INDEX_OUT_OF_RANGE


class ValidationError(IVFDBError, ValueError):
    """Input validation error."""
    kind = ErrorKind.INVALID_PARAMETER


class InvalidParameterError(ValidationError):
    """A numeric parameter is outside its allowed range."""
    pass


class ClusteringError(IVFDBError):
    """Error related to centroid training."""
    pass


class InsufficientDataError(ClusteringError):
    """Training set is smaller than the requested cluster count."""
    kind = ErrorKind.INSUFFICIENT_DATA


class IndexNotTrainedError(ClusteringError):
    """Index requires a build before use."""
    kind = ErrorKind.NOT_TRAINED


class StorageError(IVFDBError):
    """Error related to the write-ahead log."""
    kind = ErrorKind.STORAGE


class SerializationError(StorageError):
    """Error during serialization/deserialization."""
    pass
