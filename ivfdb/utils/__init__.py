"""
Utility functions for ivfdb.
"""

from .validation import (
    validate_dimension,
    validate_k,
    validate_positive_int,
    validate_probe_ratio,
    validate_refine_factor,
)
from .logging import setup_logger, get_logger, LogContext
from .parallel import WorkerPool, shard_ranges
from .rwlock import RWLock

__all__ = [
    "validate_dimension",
    "validate_k",
    "validate_positive_int",
    "validate_probe_ratio",
    "validate_refine_factor",
    "setup_logger",
    "get_logger",
    "LogContext",
    "WorkerPool",
    "shard_ranges",
    "RWLock",
]
