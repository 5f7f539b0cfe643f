"""
Text progress bar for loops whose iterations run in parallel.

Workers, whether threads or separate processes, call report_progress()
once per finished task; the bar is redrawn on stdout after every report.

Usage:
    bar = ParWaitBar(100, wait_message="Hang on...", final_message="Done!")
    with ProcessPoolExecutor() as executor:
        list(executor.map(work, range(100), [bar] * 100))
    bar.join()

where work() ends with bar.report_progress().
"""

import logging

from .core.config import options_from_env
from .core.progress import ProgressEvent, ProgressTracker
from .render import Renderer
from .transport import select_transport

logger = logging.getLogger(__name__)


class ParWaitBar:
    """
    Progress bar shared by parallel workers.

    Options are validated before anything is created. The transport is
    picked once here: a message queue consumed by a background thread, or
    a durable counter file that each worker updates under a lock.

    Instances pickle into worker processes (except with transport="thread").
    """

    def __init__(self, total_tasks, wait_message="", final_message="", marker="*",
                 bar_length=20, display_remaining_time=True, display_date=True,
                 overwrite=True, show_initial=False, transport=None, counter_dir=None,
                 erase=None, stream=None):
        """
        Initialize the progress bar.

        Args:
            total_tasks: Number of tasks that will report progress
            wait_message: Message shown while tasks report without one
            final_message: Message shown after the last task
            marker: Character filling the bar
            bar_length: Width of the bar in characters
            display_remaining_time: Show the estimated remaining time
            display_date: Prefix lines with the current date
            overwrite: Redraw in place instead of printing a new line per update
            show_initial: Print the empty bar right away
            transport: "auto", "queue", "thread" or "file"
                (default: PARBAR_TRANSPORT or "auto")
            counter_dir: Directory for the counter file used by the file transport
                (default: PARBAR_COUNTER_DIR or the system temp directory)
            erase: "auto", "ansi" or "backspace" (default: PARBAR_ERASE or "auto")
            stream: Output stream (default: sys.stdout)

        Raises:
            InvalidOptionError: If any option is invalid
            StorageUnavailable: If the file transport cannot create its counter
        """
        self.options = options_from_env(
            total_tasks,
            transport=transport,
            counter_dir=counter_dir,
            erase=erase,
            wait_message=wait_message,
            final_message=final_message,
            marker=marker,
            bar_length=bar_length,
            display_remaining_time=display_remaining_time,
            display_date=display_date,
            overwrite=overwrite,
            show_initial=show_initial
        )

        self._transport = select_transport(self.options)
        tracker = ProgressTracker(
            self.options,
            self._transport.counter,
            Renderer(self.options, stream),
            on_complete=self._transport.close
        )
        self._transport.bind(tracker)
        logger.debug("Progress bar for %d tasks using %s transport",
                     self.options.total_tasks, self._transport.kind)

        if self.options.show_initial:
            tracker.render_initial()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.teardown()
        return False

    def __repr__(self):
        return (f"ParWaitBar(total_tasks={self.options.total_tasks}, "
                f"transport={self._transport.kind!r})")

    @property
    def total_tasks(self):
        return self.options.total_tasks

    @property
    def transport_kind(self):
        return self._transport.kind

    @property
    def counter_path(self):
        """Path of the durable counter file, or None for queue transports."""
        return getattr(self._transport, 'path', None)

    @property
    def completed_tasks(self):
        return self._transport.completed_tasks()

    @property
    def progress(self):
        """Completed fraction between 0 and 1."""
        return self.completed_tasks / self.options.total_tasks

    @property
    def is_complete(self):
        return self.completed_tasks >= self.options.total_tasks

    def report_progress(self, message=None):
        """
        Report one finished task.

        Args:
            message: Optional text (or number) to show in the bar

        Raises:
            ProgressOverrunError: If every task has already been reported
            StorageUnavailable: If the durable counter cannot be updated
            TransportClosedError: If the bar has been torn down
        """
        self._transport.send(ProgressEvent.of(message))

    def join(self, timeout=None):
        """
        Wait until every queued report has been drawn.

        Returns:
            True if the bar finished consuming reports within timeout
        """
        return self._transport.join(timeout)

    def teardown(self):
        """Release the message channel or counter file. Safe to call repeatedly."""
        self._transport.close()
