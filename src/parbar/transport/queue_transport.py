"""
Transport over an asynchronous message channel.

Workers put events on the channel and return immediately. A single consumer
thread in the coordinating process takes them off one at a time, in arrival
order, and hands each to the ProgressTracker, so the bar state is never
mutated concurrently no matter how many workers report.

The channel is either a queue.Queue (threads of one process) or a queue
proxy served by a multiprocessing.Manager (worker processes).
"""

import queue
import pickle
import logging
import threading
import multiprocessing

from ..core.counter import MemoryCounter
from ..core.errors import ProgressOverrunError, TransportClosedError
from .base import Transport

logger = logging.getLogger(__name__)

# Events are always ProgressEvent instances, so None is free to mean "stop"
_STOP = None


def create_manager_channel():
    """
    Start a multiprocessing manager and create a queue served by it.

    Returns:
        Tuple of (manager, queue proxy)

    Raises:
        OSError, EOFError, RuntimeError: If the manager process cannot start
    """
    manager = multiprocessing.Manager()
    try:
        channel = manager.Queue()
    except Exception:
        manager.shutdown()
        raise
    return manager, channel


class QueueTransport(Transport):
    """
    Asynchronous single-consumer transport.

    Usage:
        transport = QueueTransport.for_threads()
        transport.bind(tracker)        # starts the consumer thread
        transport.send(ProgressEvent.of("step done"))
        transport.join(timeout=5)
    """

    def __init__(self, channel, manager=None):
        super().__init__(MemoryCounter())
        self.kind = "queue" if manager is not None else "thread"
        self._channel = channel
        self._manager = manager
        self._consumer = None
        self._done = threading.Event()
        self._close_lock = threading.Lock()
        self._closing = False
        self._total_tasks = None
        self.errors = []

    @classmethod
    def for_threads(cls):
        """Transport for workers running as threads of this process."""
        return cls(queue.Queue())

    @classmethod
    def for_processes(cls):
        """Transport whose channel can be pickled into worker processes."""
        manager, channel = create_manager_channel()
        return cls(channel, manager=manager)

    def __getstate__(self):
        if self.kind == "thread":
            raise TypeError(
                "A thread transport cannot be shared with other processes; "
                "use transport='queue' or transport='file'"
            )
        # Worker copies only ever send. The proxy is rebuilt on first use:
        # unpickling it connects to the manager, which is gone once the bar is complete.
        return {
            'kind': self.kind,
            '_channel_state': pickle.dumps(self._channel),
            '_total_tasks': self._total_tasks,
        }

    def __setstate__(self, state):
        self.__dict__.update(state)
        self.counter = None
        self.tracker = None
        self._channel = None
        self._manager = None
        self._consumer = None
        self._done = threading.Event()
        self._close_lock = threading.Lock()
        self._closing = False
        self.errors = []

    @property
    def is_owner(self):
        """True in the coordinating context that consumes events."""
        return self.tracker is not None

    def bind(self, tracker):
        super().bind(tracker)
        self._total_tasks = tracker.state.total_tasks
        self._consumer = threading.Thread(
            target=self._consume, name="parbar-consumer", daemon=True
        )
        self._consumer.start()

    def send(self, event):
        if self._closing:
            if self.tracker is not None and self.tracker.is_complete:
                raise ProgressOverrunError(self.tracker.state.total_tasks)
            raise TransportClosedError("Progress channel already closed")
        try:
            if self._channel is None:
                self._channel = pickle.loads(self._channel_state)
            self._channel.put_nowait(event)
        except (OSError, EOFError) as e:
            if self.tracker is None:
                # a worker copy: the coordinator shuts the manager down once the last task is counted
                raise ProgressOverrunError(self._total_tasks) from e
            raise TransportClosedError(f"Progress channel unavailable: {e}") from e

    def _dispatch(self, event):
        try:
            self.tracker.on_event(event)
        except ProgressOverrunError as e:
            logger.error("%s", e)
            self.errors.append(e)
        except Exception as e:
            logger.exception("Failed to process progress event")
            self.errors.append(e)

    def _drain(self):
        # events queued behind the final one are overruns
        while True:
            try:
                event = self._channel.get_nowait()
            except queue.Empty:
                return
            if event is not _STOP:
                self._dispatch(event)

    def _consume(self):
        try:
            while True:
                event = self._channel.get()
                if event is _STOP:
                    break
                self._dispatch(event)
                if self._closing:
                    self._drain()
                    break
        except (OSError, EOFError) as e:
            logger.error("Progress channel lost: %s", e)
            self.errors.append(e)
        finally:
            try:
                if self._closing:
                    # before _done, so reports after join() find the channel gone
                    self._shutdown_manager()
            finally:
                self._done.set()

    def _shutdown_manager(self):
        if self._manager is not None:
            manager, self._manager = self._manager, None
            manager.shutdown()

    def completed_tasks(self):
        if self.tracker is None:
            raise TransportClosedError("Completed count is only known to the coordinating process")
        return self.tracker.snapshot().completed_tasks

    def join(self, timeout=None):
        """
        Wait until the consumer has stopped.

        The consumer stops after the final task or after close().

        Returns:
            True if the consumer stopped within timeout

        Raises:
            The first error the consumer hit (overrun, rendering failure)
        """
        if self._consumer is None:
            return True
        finished = self._done.wait(timeout)
        if self.errors:
            raise self.errors[0]
        return finished

    def close(self):
        """
        Stop the consumer and release the channel.

        Events already queued are processed first. Safe to call from the
        consumer thread itself (it is, on completion) and more than once.
        """
        with self._close_lock:
            if self._closing:
                return
            self._closing = True

        consumer = self._consumer
        if consumer is None:
            return
        if consumer is threading.current_thread():
            # _consume finishes the current event, drains and shuts down
            return
        if consumer.is_alive():
            try:
                self._channel.put_nowait(_STOP)
            except (OSError, EOFError):
                logger.debug("Progress channel already gone while closing")
            consumer.join()
        self._shutdown_manager()
