"""
Distance kernels for vector similarity search.

Supported Metrics:
    - l2: squared Euclidean distance (smaller = more similar)
    - ip: inner product (larger = more similar)

Example:
    >>> from ivfdb.distance import l2_squared, inner_product, get_metric
    >>> import numpy as np
    >>>
    >>> a = np.array([1.0, 2.0, 3.0])
    >>> b = np.array([4.0, 5.0, 6.0])
    >>>
    >>> l2_squared(a, b)
    27.0
    >>> inner_product(a, b)
    32.0
"""

from .metrics import (
    # Single vector kernels
    l2_squared,
    inner_product,
    # Query to collection
    l2_squared_batch,
    inner_product_batch,
    # Pairwise
    pairwise_l2_squared,
    pairwise_inner_product,
)

from .registry import (
    DistanceMetric,
    MetricInfo,
    get_metric,
    get_metric_fn,
    get_batch_fn,
    list_metrics,
    is_similarity,
)

__all__ = [
    "l2_squared",
    "inner_product",
    "l2_squared_batch",
    "inner_product_batch",
    "pairwise_l2_squared",
    "pairwise_inner_product",
    "DistanceMetric",
    "MetricInfo",
    "get_metric",
    "get_metric_fn",
    "get_batch_fn",
    "list_metrics",
    "is_similarity",
]
