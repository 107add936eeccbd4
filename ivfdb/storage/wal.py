"""
Write-ahead log for vector appends.

Each record is a msgpack map ``{"seq": int, "op": str, "data": {...}}``
written back to back in a single append-only file. Records are flushed
as they are written and optionally fsync'd.

A crash in the middle of a write leaves a partial record at the end of
the file. Replay stops before it with a warning, and reopening the log
for writing cuts it off so new records start on a clean boundary.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple, Union

import msgpack
import numpy as np
from numpy.typing import ArrayLike, NDArray

from .serialization import VectorSerializer, pack_record
from ..core.exceptions import SerializationError, StorageError
from ..utils.logging import get_logger


logger = get_logger(__name__)

# Record operations
OP_ADD_VECTOR = "add_vector"
OP_ADD_BATCH = "add_batch"
VECTOR_OPS = (OP_ADD_VECTOR, OP_ADD_BATCH)


@dataclass
class WALRecord:
    """A single log entry."""

    seq: int
    op: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"seq": self.seq, "op": self.op, "data": self.data}

    @classmethod
    def from_dict(cls, raw: Any) -> "WALRecord":
        if (
            not isinstance(raw, dict)
            or not isinstance(raw.get("seq"), int)
            or not isinstance(raw.get("op"), str)
            or not isinstance(raw.get("data", {}), dict)
        ):
            raise SerializationError(f"Malformed WAL record: {raw!r}")
        return cls(seq=raw["seq"], op=raw["op"], data=raw.get("data", {}))

    def vector(self) -> NDArray[np.float32]:
        """
        Decode the payload of an ``add_vector`` record.

        Raises:
            SerializationError: If this is not a well-formed add_vector record
        """
        if self.op != OP_ADD_VECTOR:
            raise SerializationError(f"Record {self.seq} is '{self.op}', not a vector")

        try:
            dimension = int(self.data["dimension"])
            payload = self.data["vector"]
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"Record {self.seq} has a bad payload: {e}") from e

        return VectorSerializer(dimension).deserialize(payload)

    def vectors(self) -> NDArray[np.float32]:
        """
        Decode an ``add_vector`` or ``add_batch`` record as an (n, dimension)
        array.

        Raises:
            SerializationError: If the record carries no well-formed vectors
        """
        if self.op == OP_ADD_VECTOR:
            return self.vector().reshape(1, -1)

        if self.op != OP_ADD_BATCH:
            raise SerializationError(f"Record {self.seq} is '{self.op}', not vectors")

        try:
            dimension = int(self.data["dimension"])
            count = int(self.data["count"])
            payload = self.data["vectors"]
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"Record {self.seq} has a bad payload: {e}") from e

        return VectorSerializer(dimension).deserialize_batch(payload, count)


class WriteAheadLog:
    """
    Append-only msgpack log.

    Example:
        >>> with WriteAheadLog("data/ivfdb.wal") as wal:
        ...     wal.append_vector(np.ones(4, dtype=np.float32))
        ...     for record in wal.replay():
        ...         print(record.seq, record.op)
        0 add_vector
    """

    def __init__(self, path: Union[str, Path], sync: bool = False):
        """
        Open (or create) a log file.

        Args:
            path: Log file path; parent directories are created
            sync: fsync after every record

        Raises:
            StorageError: If the file cannot be opened
        """
        self._path = Path(path)
        self._sync = sync
        self._lock = threading.Lock()

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.touch(exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create WAL at {self._path}: {e}") from e

        last_seq, valid_bytes = self._scan()
        self._next_seq = last_seq + 1

        size = self._path.stat().st_size
        if valid_bytes < size:
            logger.warning(
                "Truncating %d trailing bytes of a partial record in %s",
                size - valid_bytes,
                self._path,
            )
            os.truncate(self._path, valid_bytes)

        try:
            self._file = open(self._path, "ab")
        except OSError as e:
            raise StorageError(f"Cannot open WAL at {self._path}: {e}") from e

        logger.info("Opened WAL %s (next seq %d)", self._path, self._next_seq)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def path(self) -> Path:
        return self._path

    @property
    def next_seq(self) -> int:
        """Sequence number the next record will get."""
        return self._next_seq

    @property
    def closed(self) -> bool:
        return self._file.closed

    # =========================================================================
    # WRITES
    # =========================================================================

    def append(self, op: str, data: Optional[Dict[str, Any]] = None) -> WALRecord:
        """
        Write a record and flush it.

        Returns:
            The record as written

        Raises:
            StorageError: If the log is closed or the write fails
        """
        with self._lock:
            if self._file.closed:
                raise StorageError(f"WAL {self._path} is closed")

            record = WALRecord(seq=self._next_seq, op=op, data=data or {})
            payload = pack_record(record.to_dict())

            offset = self._file.tell()
            try:
                self._file.write(payload)
                self._file.flush()
                if self._sync:
                    os.fsync(self._file.fileno())
            except OSError as e:
                self._rollback(offset)
                raise StorageError(f"WAL write failed: {e}") from e

            self._next_seq += 1
            return record

    def _rollback(self, offset: int) -> None:
        """Cut a failed write back to ``offset``. Caller holds the lock."""
        try:
            self._file.truncate(offset)
            self._file.seek(offset)
        except (OSError, ValueError) as e:
            logger.error("Could not roll back WAL %s to %d: %s", self._path, offset, e)

    def append_vector(self, vector: ArrayLike) -> WALRecord:
        """Log an ``add_vector`` record carrying the raw float32 bytes."""
        vector = np.asarray(vector, dtype=np.float32)
        serializer = VectorSerializer(len(vector))
        return self.append(
            OP_ADD_VECTOR,
            {"dimension": len(vector), "vector": serializer.serialize(vector)},
        )

    def append_batch(self, vectors: ArrayLike) -> WALRecord:
        """
        Log a whole batch as one ``add_batch`` record.

        Replay sees either the complete batch or, after a crash mid-write,
        none of it.
        """
        return self.append(OP_ADD_BATCH, _batch_payload(vectors))

    def clear(self, snapshot: Optional[ArrayLike] = None) -> None:
        """
        Checkpoint: discard every record and restart numbering at 0.

        When ``snapshot`` is given the new log holds it as a single
        ``add_batch`` record. The new file is written beside the old one and
        swapped in with ``os.replace``, so a crash leaves one or the other.

        Raises:
            StorageError: If the log is closed or the rewrite fails
        """
        with self._lock:
            if self._file.closed:
                raise StorageError(f"WAL {self._path} is closed")

            records = []
            if snapshot is not None and len(snapshot):
                records.append(WALRecord(seq=0, op=OP_ADD_BATCH, data=_batch_payload(snapshot)))

            tmp_path = self._path.with_name(self._path.name + ".tmp")
            try:
                with open(tmp_path, "wb") as f:
                    for record in records:
                        f.write(pack_record(record.to_dict()))
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self._path)
                self._file.close()
                self._file = open(self._path, "ab")
            except OSError as e:
                raise StorageError(f"WAL checkpoint failed: {e}") from e

            self._next_seq = len(records)

        logger.info(
            "WAL %s cleared (checkpoint, %d snapshot records)", self._path, len(records)
        )

    # =========================================================================
    # READS
    # =========================================================================

    def replay(self) -> Iterator[WALRecord]:
        """
        Yield every complete record in append order.

        A partial record at the end of the file is skipped with a warning.

        Raises:
            SerializationError: If a complete record is malformed
        """
        with self._lock:
            if not self._file.closed:
                self._file.flush()

        size = self._path.stat().st_size
        end = 0
        for record, end in self._read_records():
            yield record

        if end < size:
            logger.warning(
                "Ignoring partial record at offset %d of %s (%d bytes)",
                end,
                self._path,
                size - end,
            )

    def _read_records(self) -> Iterator[Tuple[WALRecord, int]]:
        """
        Yield (record, offset just past it) for each complete record.

        The unpacker's position only marks a record boundary right after an
        object is returned; once it starts on a partial tail it moves past
        the bytes it has buffered.
        """
        with open(self._path, "rb") as f:
            unpacker = msgpack.Unpacker(f, raw=False)
            try:
                for raw in unpacker:
                    yield WALRecord.from_dict(raw), unpacker.tell()
            except (msgpack.UnpackException, ValueError) as e:
                raise SerializationError(f"Corrupt WAL {self._path}: {e}") from e

    def _scan(self) -> Tuple[int, int]:
        """Return (last seq, byte length of the complete records)."""
        last_seq, valid_bytes = -1, 0
        for record, valid_bytes in self._read_records():
            last_seq = record.seq
        return last_seq, valid_bytes

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def close(self) -> None:
        with self._lock:
            if not self._file.closed:
                self._file.flush()
                if self._sync:
                    os.fsync(self._file.fileno())
                self._file.close()

    def __enter__(self) -> "WriteAheadLog":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"WriteAheadLog(path='{self._path}', next_seq={self._next_seq})"


def _batch_payload(vectors: ArrayLike) -> Dict[str, Any]:
    vectors = np.asarray(vectors, dtype=np.float32)
    if vectors.ndim != 2:
        raise SerializationError(f"Batch must be 2D, got shape {vectors.shape}")

    serializer = VectorSerializer(vectors.shape[1])
    return {
        "dimension": vectors.shape[1],
        "count": len(vectors),
        "vectors": serializer.serialize_batch(vectors),
    }
