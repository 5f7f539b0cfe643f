"""
Progress aggregation for parallel task execution.

ProgressTracker is the single point where completions are counted. Whatever
transport delivers an event, the tracker increments the shared counter,
picks the message to show, hands the state to the renderer and, when the
last task completes, fires its completion callback once.
"""

import copy
import time
import logging
import threading
from dataclasses import dataclass

from .errors import ProgressOverrunError

logger = logging.getLogger(__name__)


@dataclass
class ProgressState:
    """
    Cumulative progress of one bar.

    Not thread-safe on its own; ProgressTracker provides the locking.

    Attributes:
        total_tasks: Number of units of work expected
        completed_tasks: Number counted so far
        start_time: Wall-clock time (seconds since epoch) the bar was created
        last_message: Message rendered with the latest update
    """
    total_tasks: int
    completed_tasks: int = 0
    start_time: float = 0.0
    last_message: str = None

    @property
    def fraction(self):
        return self.completed_tasks / self.total_tasks

    @property
    def percent(self):
        """Completion percentage rounded down (0-100)."""
        return (100 * self.completed_tasks) // self.total_tasks

    @property
    def is_complete(self):
        return self.completed_tasks >= self.total_tasks

    def filled(self, bar_length):
        """Number of bar cells to fill, rounded down."""
        return (bar_length * self.completed_tasks) // self.total_tasks

    def elapsed(self, now=None):
        now = time.time() if now is None else now
        return max(now - self.start_time, 0.0)

    def remaining(self, now=None):
        """
        Estimate seconds until completion.

        Returns:
            elapsed * (1/fraction - 1), or None before any task has completed
        """
        if self.completed_tasks <= 0:
            return None
        return self.elapsed(now) * (1.0 / self.fraction - 1.0)


@dataclass(frozen=True)
class ProgressEvent:
    """One completed unit of work, with an optional message."""
    message: str = None

    @classmethod
    def of(cls, message=None):
        """Build an event, converting non-text messages (numbers, objects) with str()."""
        if message is None:
            return cls()
        if not isinstance(message, str):
            message = str(message)
        return cls(message or None)


class ProgressTracker:
    """
    Counts completions and drives the renderer.

    States: WAITING while completed_tasks < total_tasks, then COMPLETE,
    which is absorbing. Any event arriving in COMPLETE is an overrun.

    Usage:
        tracker = ProgressTracker(options, MemoryCounter(), renderer,
                                  on_complete=transport.close)
        tracker.on_event(ProgressEvent.of("loaded file 3"))
    """

    def __init__(self, options, counter, renderer, on_complete=None):
        """
        Initialize progress tracker.

        Args:
            options: WaitBarOptions for this bar
            counter: ProgressCounter shared by every reporting context
            renderer: Renderer that prints the bar
            on_complete: Called once, without arguments, when the bar completes
        """
        self.options = options
        self.counter = counter
        self.renderer = renderer
        self.on_complete = on_complete
        self.state = ProgressState(total_tasks=options.total_tasks, start_time=time.time())
        self._lock = threading.Lock()
        self._finish_lock = threading.Lock()
        self._finished = False

    def __getstate__(self):
        state = self.__dict__.copy()
        del state['_lock']
        del state['_finish_lock']
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._lock = threading.Lock()
        self._finish_lock = threading.Lock()

    @property
    def is_complete(self):
        return self.state.is_complete

    def select_message(self, event):
        """
        Pick the text for the message field.

        The final message always wins once the bar is complete; before that
        the event's own message is used, falling back to the wait message.
        """
        if self.state.is_complete:
            return self.options.final_message
        if event is not None and event.message:
            return event.message
        return self.options.wait_message

    def _render_shared(self, message, shared):
        # copies in other processes print to the same terminal, so the erase
        # decision and padding come from what the counter recorded last
        self.renderer.load_shared(shared)
        self.renderer.render(self.state, message)
        return self.renderer.shared_fields()

    def render_initial(self):
        """Print the empty bar before any task has completed."""
        with self._lock:
            self.counter.inspect(
                lambda count, shared: self._render_shared(self.options.wait_message, shared)
            )

    def on_event(self, event):
        """
        Count one completed unit of work and redraw the bar.

        Args:
            event: ProgressEvent delivered by the transport

        Returns:
            Completed task count after this event

        Raises:
            ProgressOverrunError: If the bar was already complete
            StorageUnavailable: If the durable counter cannot be updated
        """
        total = self.state.total_tasks

        def apply(count, shared):
            # other processes may have counted in between, so take the counter's value
            self.state.completed_tasks = count
            message = self.select_message(event)
            self.state.last_message = message
            return self._render_shared(message, shared)

        with self._lock:
            if self.state.is_complete:
                raise ProgressOverrunError(total, self.state.completed_tasks)
            # lines appear in count order because printing happens in the counter's critical section
            count = self.counter.increment_and_read(limit=total, then=apply)
            finished = self.state.is_complete

        if finished:
            self.finish()
        return count

    def finish(self):
        """
        Run the completion callback. Safe to call repeatedly; only the first
        call after completion has any effect.
        """
        with self._finish_lock:
            if self._finished or not self.state.is_complete:
                return
            self._finished = True
        logger.debug("All %d tasks completed", self.state.total_tasks)
        if self.on_complete is not None:
            self.on_complete()

    def snapshot(self):
        """Copy of the current state, safe to read without the lock."""
        with self._lock:
            return copy.copy(self.state)
