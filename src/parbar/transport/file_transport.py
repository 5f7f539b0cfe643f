"""
Transport through a durable counter file, for workers that share nothing.

There is no consumer loop: the context calling send() locks the file,
increments the count, prints its own copy of the bar and unlocks. The
renderer's bookkeeping (last line length, message width, lines printed) is
stored in the same file, so whichever process prints next erases and pads
correctly. Each worker process receives a pickled copy of the transport
together with its tracker and renderer.
"""

import logging
import threading

from ..core.counter import FileCounter
from ..core.errors import TransportClosedError
from .base import Transport

logger = logging.getLogger(__name__)


class FileTransport(Transport):
    """Synchronous transport over a FileCounter."""
    kind = "file"

    def __init__(self, counter):
        super().__init__(counter)
        self._close_lock = threading.Lock()
        self._closed = False

    @classmethod
    def create(cls, directory):
        """
        Create the counter file (holding 0) and a transport bound to it.

        Raises:
            StorageUnavailable: If the counter file cannot be created
        """
        return cls(FileCounter.create(directory))

    def __getstate__(self):
        state = self.__dict__.copy()
        del state['_close_lock']
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._close_lock = threading.Lock()

    @property
    def path(self):
        return self.counter.path

    def send(self, event):
        if self.tracker is None:
            raise TransportClosedError("No progress tracker attached to this transport")
        # locking, incrementing and rendering all happen inside on_event
        return self.tracker.on_event(event)

    def completed_tasks(self):
        if self.counter.exists():
            return self.counter.read()
        # the file is only deleted once its value reached the total
        return self.tracker.state.total_tasks if self.tracker is not None else 0

    def close(self):
        """
        Delete the counter file if every task has been counted.

        An incomplete counter is left in place so late workers can still
        report and a later close() can remove it. Once the file is gone,
        further calls are no-ops.
        """
        with self._close_lock:
            if self._closed:
                return
            total = self.tracker.state.total_tasks
            self.counter.delete_if_complete(total)
            if self.counter.exists():
                logger.warning(
                    "Progress counter %s left in place: not all %d tasks were reported",
                    self.path, total
                )
            else:
                self._closed = True
