"""
Durability for ivfdb: the write-ahead log and its serializers.
"""

from .serialization import VectorSerializer, pack_record
from .wal import OP_ADD_BATCH, OP_ADD_VECTOR, VECTOR_OPS, WALRecord, WriteAheadLog

__all__ = [
    "VectorSerializer",
    "pack_record",
    "WALRecord",
    "WriteAheadLog",
    "OP_ADD_VECTOR",
    "OP_ADD_BATCH",
    "VECTOR_OPS",
]
