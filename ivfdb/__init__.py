"""
ivfdb - In-memory approximate nearest neighbor search with an IVF index.

Example:
    >>> from ivfdb import VectorEngine
    >>> import numpy as np
    >>>
    >>> # Create engine and add vectors
    >>> engine = VectorEngine(dimension=128, n_lists=64)
    >>> engine.add_batch(np.random.randn(10000, 128))
    >>>
    >>> # Train the clusters, then search
    >>> engine.build()
    >>> results = engine.search(np.random.randn(128), top_k=5)
"""

from .core import (
    # Main classes
    VectorEngine,
    VectorStore,
    # Exceptions
    ErrorKind,
    IVFDBError,
    DimensionMismatchError,
    IndexOutOfRangeError,
    InvalidParameterError,
    InsufficientDataError,
    IndexNotTrainedError,
    StorageError,
)

from .index import (
    IVFIndex,
    FlatIndex,
    KMeans,
    ClusteringState,
    SearchResult,
)

from .distance import (
    # Kernels
    l2_squared,
    inner_product,
    # Registry
    get_metric,
    list_metrics,
    DistanceMetric,
)

__version__ = "0.1.0"
__author__ = "ivfdb Team"

__all__ = [
    # Main classes
    "VectorEngine",
    "VectorStore",
    "IVFIndex",
    "FlatIndex",
    "KMeans",
    "ClusteringState",
    "SearchResult",
    # Exceptions
    "ErrorKind",
    "IVFDBError",
    "DimensionMismatchError",
    "IndexOutOfRangeError",
    "InvalidParameterError",
    "InsufficientDataError",
    "IndexNotTrainedError",
    "StorageError",
    # Distance functions
    "l2_squared",
    "inner_product",
    "get_metric",
    "list_metrics",
    "DistanceMetric",
]
