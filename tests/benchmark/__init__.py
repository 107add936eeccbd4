"""
Benchmarks for ivfdb.

Helpers shared by the benchmark scripts: timing, synthetic data,
brute-force ground truth and recall.

Usage:
    python -m tests.benchmark.bench_search
"""

import time
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import numpy as np


@dataclass
class RecallResult:
    """Recall and latency for one parameter setting."""

    name: str
    dataset_size: int
    dimension: int
    k: int

    recall_at_k: float
    recall_at_1: float

    build_time: float
    mean_search_time: float
    p99_search_time: float

    params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "dataset_size": self.dataset_size,
            "dimension": self.dimension,
            "k": self.k,
            "recall": {
                "recall_at_k": self.recall_at_k,
                "recall_at_1": self.recall_at_1,
            },
            "timing": {
                "build_time": self.build_time,
                "mean_search_time": self.mean_search_time,
                "p99_search_time": self.p99_search_time,
            },
            "params": self.params,
        }

    def __str__(self) -> str:
        params = ", ".join(f"{k}={v}" for k, v in self.params.items())
        return (
            f"{self.name} [{params}]: "
            f"recall@{self.k}={self.recall_at_k:.3f} "
            f"recall@1={self.recall_at_1:.3f} "
            f"mean={self.mean_search_time * 1000:.3f} ms "
            f"p99={self.p99_search_time * 1000:.3f} ms"
        )


class Timer:
    """Context manager for timing operations."""

    def __init__(self):
        self.elapsed = 0.0
        self._start = None

    def __enter__(self):
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed = time.perf_counter() - self._start


def generate_clustered_data(
    n_vectors: int,
    dimension: int,
    n_centers: int,
    spread: float = 1.0,
    seed: int = 42,
) -> np.ndarray:
    """Gaussian blobs around ``n_centers`` random centers."""
    rng = np.random.RandomState(seed)
    centers = rng.randn(n_centers, dimension).astype(np.float32) * 8
    labels = rng.randint(0, n_centers, size=n_vectors)
    noise = rng.randn(n_vectors, dimension).astype(np.float32) * spread
    return (centers[labels] + noise).astype(np.float32)


def generate_query_data(
    data: np.ndarray,
    n_queries: int,
    noise: float = 0.1,
    seed: int = 123,
) -> np.ndarray:
    """Queries drawn near stored vectors."""
    rng = np.random.RandomState(seed)
    picks = rng.choice(len(data), size=n_queries, replace=False)
    jitter = rng.randn(n_queries, data.shape[1]).astype(np.float32) * noise
    return (data[picks] + jitter).astype(np.float32)


def compute_ground_truth(data: np.ndarray, queries: np.ndarray, k: int) -> np.ndarray:
    """Exact k nearest neighbors by squared Euclidean distance."""
    from scipy.spatial.distance import cdist

    distances = cdist(queries, data, metric="sqeuclidean")
    return np.argsort(distances, axis=1, kind="stable")[:, :k]


def compute_recall(
    predicted: List[List[int]],
    ground_truth: np.ndarray,
    k: int
) -> float:
    """Compute recall@k metric."""
    recalls = []
    for pred, gt in zip(predicted, ground_truth):
        gt_set = set(gt[:k].tolist())
        if gt_set:
            recalls.append(len(set(pred[:k]) & gt_set) / len(gt_set))
    return float(np.mean(recalls)) if recalls else 0.0


def save_results(results: List[RecallResult], filepath: str) -> None:
    """Save results to a JSON file."""
    data = {
        "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        "results": [r.to_dict() for r in results],
    }

    Path(filepath).parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as f:
        json.dump(data, f, indent=2)


# Benchmark configuration presets
SMALL_DATASET = {"n_vectors": 10000, "dimension": 64, "n_queries": 100, "n_lists": 100}
MEDIUM_DATASET = {"n_vectors": 100000, "dimension": 128, "n_queries": 200, "n_lists": 316}
LARGE_DATASET = {"n_vectors": 1000000, "dimension": 128, "n_queries": 200, "n_lists": 1000}


def get_benchmark_config(size: str = "small") -> Dict[str, int]:
    """Get benchmark configuration by size name."""
    configs = {
        "small": SMALL_DATASET,
        "medium": MEDIUM_DATASET,
        "large": LARGE_DATASET,
    }
    if size not in configs:
        raise ValueError(f"Unknown benchmark size '{size}', choose from {sorted(configs)}")
    return dict(configs[size])
