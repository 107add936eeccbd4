"""
Index implementations for ivfdb.

Available Indices:
    - IVFIndex: Inverted file index with adaptive probing (approximate)
    - FlatIndex: Brute-force search (exact, used as ground truth)
"""

from .base import IndexConfig, IndexStats, IndexType, SearchResult
from .topk import TopKCollector
from .kmeans import ClusteringState, KMeans, assign_nearest
from .ivf import IVFConfig, IVFIndex
from .flat import FlatIndex

__all__ = [
    "IndexConfig",
    "IndexStats",
    "IndexType",
    "SearchResult",
    "TopKCollector",
    "ClusteringState",
    "KMeans",
    "assign_nearest",
    "IVFConfig",
    "IVFIndex",
    "FlatIndex",
]
