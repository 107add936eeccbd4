"""
Distance metric registry.

Provides a unified interface for accessing distance kernels by name.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

import numpy as np
from numpy.typing import NDArray

from .metrics import (
    l2_squared,
    inner_product,
    l2_squared_batch,
    inner_product_batch,
    pairwise_l2_squared,
    pairwise_inner_product,
)
from ..core.exceptions import InvalidParameterError


# Type aliases
DistanceFunction = Callable[[NDArray, NDArray], float]
BatchDistanceFunction = Callable[[NDArray, NDArray], NDArray]
PairwiseDistanceFunction = Callable[[NDArray, Optional[NDArray]], NDArray]


class DistanceMetric(str, Enum):
    """Enumeration of built-in metrics."""

    L2 = "l2"
    IP = "ip"

    def __str__(self) -> str:
        return self.value


@dataclass
class MetricInfo:
    """Information about a distance metric."""

    name: str
    function: DistanceFunction
    batch_function: BatchDistanceFunction
    pairwise_function: PairwiseDistanceFunction
    is_similarity: bool  # True if larger values = more similar
    description: str

    def __repr__(self) -> str:
        return f"MetricInfo(name='{self.name}', is_similarity={self.is_similarity})"


class MetricRegistry:
    """
    Registry for distance metrics.

    Allows looking up metrics by name or alias.
    """

    def __init__(self):
        self._metrics: Dict[str, MetricInfo] = {}
        self._aliases: Dict[str, str] = {}
        self._register_builtins()

    def _register_builtins(self) -> None:
        """Register built-in metrics."""
        self.register(
            MetricInfo(
                name=DistanceMetric.L2.value,
                function=l2_squared,
                batch_function=l2_squared_batch,
                pairwise_function=pairwise_l2_squared,
                is_similarity=False,
                description="Squared Euclidean distance",
            ),
            aliases=["l2_squared", "euclidean_squared", "sqeuclidean"],
        )

        self.register(
            MetricInfo(
                name=DistanceMetric.IP.value,
                function=inner_product,
                batch_function=inner_product_batch,
                pairwise_function=pairwise_inner_product,
                is_similarity=True,
                description="Inner product (larger = more similar)",
            ),
            aliases=["dot", "inner_product"],
        )

    def register(self, info: MetricInfo, aliases: Optional[List[str]] = None) -> None:
        """
        Register a metric.

        Raises:
            ValueError: If the name is already taken
        """
        if info.name in self._metrics:
            raise ValueError(f"Metric '{info.name}' already registered")

        self._metrics[info.name] = info
        for alias in aliases or []:
            self._aliases[alias] = info.name

    def get(self, name: str) -> MetricInfo:
        """
        Look up a metric by name or alias.

        Raises:
            InvalidParameterError: If the metric is unknown
        """
        key = str(name).lower()
        key = self._aliases.get(key, key)

        if key not in self._metrics:
            raise InvalidParameterError(
                f"Unknown metric: {name}. Available: {', '.join(self.list())}"
            )
        return self._metrics[key]

    def list(self) -> List[str]:
        """List registered metric names."""
        return sorted(self._metrics)


_registry = MetricRegistry()


def get_metric(name: str) -> MetricInfo:
    """Get full metric information by name."""
    return _registry.get(name)


def get_metric_fn(name: str) -> DistanceFunction:
    """Get the single-pair kernel for a metric."""
    return _registry.get(name).function


def get_batch_fn(name: str) -> BatchDistanceFunction:
    """Get the query-to-collection kernel for a metric."""
    return _registry.get(name).batch_function


def list_metrics() -> List[str]:
    """List registered metric names."""
    return _registry.list()


def is_similarity(name: str) -> bool:
    """Whether larger values mean more similar for this metric."""
    return _registry.get(name).is_similarity
