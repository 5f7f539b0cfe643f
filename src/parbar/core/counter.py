"""
Counters that record how many units of work have completed.

MemoryCounter serves workers sharing one address space. FileCounter keeps
the count in a small text file so isolated worker processes can all update
it; every read-increment-write cycle holds an exclusive OS lock on the file.

Besides the count, a counter stores a short tuple of integers on behalf of
its caller (the renderer's bookkeeping), updated in the same critical
section so every process sees what the previous one printed.
"""

import os
import sys
import uuid
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from .config import COUNTER_FILE_PREFIX, COUNTER_FILE_SUFFIX
from .errors import StorageUnavailable, ProgressOverrunError

if sys.platform == 'win32':
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)


class ProgressCounter(ABC):
    """Atomic counter shared by every context that reports progress."""

    @abstractmethod
    def read(self):
        """Return the current count."""

    @abstractmethod
    def increment_and_read(self, limit=None, then=None):
        """
        Add one to the count and return the new value.

        Args:
            limit: If given, the count may never exceed this value
            then: Optional callable run as then(count, shared) inside the
                critical section once the new count is stored. shared is
                the tuple last returned by such a callable (empty at first);
                a tuple returned by then replaces it.

        Returns:
            The count after incrementing

        Raises:
            ProgressOverrunError: If the count already equals or exceeds limit
        """

    @abstractmethod
    def inspect(self, then):
        """
        Run then(count, shared) inside the critical section without counting.

        Returns:
            The current count
        """


class MemoryCounter(ProgressCounter):
    """Lock-guarded in-memory counter for threads of one process."""

    def __init__(self, start=0):
        self._value = start
        self._shared = ()
        self._lock = threading.Lock()

    def read(self):
        with self._lock:
            return self._value

    def _run(self, then):
        shared = then(self._value, self._shared)
        if shared is not None:
            self._shared = tuple(shared)

    def increment_and_read(self, limit=None, then=None):
        with self._lock:
            if limit is not None and self._value >= limit:
                raise ProgressOverrunError(limit, self._value)
            self._value += 1
            if then is not None:
                self._run(then)
            return self._value

    def inspect(self, then):
        with self._lock:
            self._run(then)
            return self._value


def _lock_file(handle):
    if sys.platform == 'win32':
        handle.seek(0)
        # Locks the first byte; LK_LOCK retries for about 10 seconds before failing
        msvcrt.locking(handle.fileno(), msvcrt.LK_LOCK, 1)
    else:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)


def _unlock_file(handle):
    if sys.platform == 'win32':
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


class FileCounter(ProgressCounter):
    """
    Durable counter stored as a plain-text integer in a uniquely named file.

    The first line holds the count. A second line, written once a caller
    shares data through then(), holds space-separated integers.

    Only the path is kept on the instance, so a FileCounter pickles cleanly
    into worker processes; each call opens, locks and closes the file.

    Usage:
        counter = FileCounter.create("/tmp")
        counter.increment_and_read(limit=10)   # -> 1
        counter.delete_if_complete(10)         # -> False, count is 1
    """

    def __init__(self, path):
        self.path = Path(path)

    @classmethod
    def create(cls, directory):
        """
        Create a new counter file holding 0.

        Args:
            directory: Directory shared by every worker

        Returns:
            FileCounter bound to the new file

        Raises:
            StorageUnavailable: If the file cannot be created
        """
        path = Path(directory) / f"{COUNTER_FILE_PREFIX}{uuid.uuid4().hex}{COUNTER_FILE_SUFFIX}"
        try:
            with open(path, 'x', encoding='ascii') as f:
                f.write("0")
        except OSError as e:
            raise StorageUnavailable(path, f"cannot create counter file: {e}") from e
        logger.debug("Created progress counter %s", path)
        return cls(path)

    def exists(self):
        return self.path.exists()

    def _parse(self, text):
        lines = text.split("\n")
        try:
            value = int(lines[0].strip())
            shared = tuple(int(field) for field in lines[1].split()) if len(lines) > 1 else ()
        except ValueError as e:
            raise StorageUnavailable(self.path, f"corrupt counter contents: {text!r}") from e
        return value, shared

    def _open(self, limit):
        try:
            return open(self.path, 'r+', encoding='ascii')
        except FileNotFoundError as e:
            if limit is not None:
                # the file is only deleted once the count reached its limit
                raise ProgressOverrunError(limit) from e
            raise StorageUnavailable(self.path, f"cannot open counter file: {e}") from e
        except OSError as e:
            raise StorageUnavailable(self.path, f"cannot open counter file: {e}") from e

    def _load(self, handle):
        try:
            handle.seek(0)
            text = handle.read()
        except OSError as e:
            raise StorageUnavailable(self.path, f"cannot read counter file: {e}") from e
        return self._parse(text)

    def _store(self, handle, value, shared):
        text = str(value)
        if shared:
            text += "\n" + " ".join(str(field) for field in shared)
        try:
            handle.seek(0)
            handle.truncate()
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        except OSError as e:
            raise StorageUnavailable(self.path, f"cannot update counter file: {e}") from e

    def _locked(self, update, then=None, limit=None):
        # update(current) returns the count to persist; then runs after it is stored
        with self._open(limit) as handle:
            try:
                _lock_file(handle)
            except OSError as e:
                raise StorageUnavailable(self.path, f"cannot lock counter file: {e}") from e
            try:
                current, shared = self._load(handle)
                value = update(current)
                if value != current:
                    self._store(handle, value, shared)
                if then is not None:
                    new_shared = then(value, shared)
                    if new_shared is not None and tuple(new_shared) != shared:
                        self._store(handle, value, tuple(new_shared))
                return value
            finally:
                try:
                    _unlock_file(handle)
                except OSError:
                    # closing the handle releases the lock as well
                    logger.debug("Unlock of %s failed, relying on close", self.path)

    def read(self):
        return self._locked(lambda current: current)

    def increment_and_read(self, limit=None, then=None):
        def bump(current):
            if limit is not None and current >= limit:
                raise ProgressOverrunError(limit, current)
            return current + 1
        return self._locked(bump, then, limit)

    def inspect(self, then):
        return self._locked(lambda current: current, then)

    def delete_if_complete(self, total):
        """
        Delete the counter file if its value equals total.

        Args:
            total: Expected final count

        Returns:
            True if this call deleted the file, False if it was already gone
            or has not reached total yet
        """
        if not self.exists():
            return False
        try:
            value = self.read()
        except StorageUnavailable:
            if not self.exists():
                # another context deleted it between the two checks
                return False
            raise
        if value != total:
            logger.debug("Keeping counter %s at %d of %d", self.path, value, total)
            return False
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageUnavailable(self.path, f"cannot delete counter file: {e}") from e
        logger.debug("Deleted completed progress counter %s", self.path)
        return True
