"""
Read-write lock used to guard index state.

Any number of readers may hold the lock at once; a writer holds it alone.
Waiting writers block new readers so a build is not starved by a steady
stream of searches.
"""

import threading
from contextlib import contextmanager


class RWLock:
    """
    Simple Read-Write Lock implementation.

    Not reentrant: a thread holding the write lock must not acquire it
    (or the read lock) again.

    Example:
        >>> lock = RWLock()
        >>> with lock.read_locked():
        ...     pass  # shared access
        >>> with lock.write_locked():
        ...     pass  # exclusive access
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._cond = threading.Condition(self._lock)
        self._readers = 0
        self._writers_waiting = 0
        self._writer_active = False

    @property
    def readers(self) -> int:
        """Number of threads currently holding the read lock."""
        return self._readers

    @property
    def writer_active(self) -> bool:
        return self._writer_active

    def acquire_read(self) -> None:
        """Acquire read lock."""
        with self._lock:
            while self._writer_active or self._writers_waiting > 0:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        """Release read lock."""
        with self._lock:
            if self._readers <= 0:
                raise RuntimeError("release_read() called without a matching acquire")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        """Acquire write lock."""
        with self._lock:
            self._writers_waiting += 1
            try:
                while self._readers > 0 or self._writer_active:
                    self._cond.wait()
            except BaseException:
                # Readers held back by this writer must re-check
                self._writers_waiting -= 1
                self._cond.notify_all()
                raise
            self._writers_waiting -= 1
            self._writer_active = True

    def release_write(self) -> None:
        """Release write lock."""
        with self._lock:
            if not self._writer_active:
                raise RuntimeError("release_write() called without a matching acquire")
            self._writer_active = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self):
        """Hold the lock in shared mode for the duration of the block."""
        self.acquire_read()
        try:
            yield self
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self):
        """Hold the lock in exclusive mode for the duration of the block."""
        self.acquire_write()
        try:
            yield self
        finally:
            self.release_write()

    def __enter__(self):
        """Default to write lock for context manager."""
        self.acquire_write()
        return self

    def __exit__(self, *args):
        self.release_write()

    def __repr__(self) -> str:
        return (
            f"RWLock(readers={self._readers}, "
            f"writer_active={self._writer_active}, "
            f"writers_waiting={self._writers_waiting})"
        )
