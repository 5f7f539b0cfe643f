"""
Option defaults and validation for the progress bar.

Transport, counter directory and erase mode may also be set through
environment variables, which only apply when the caller leaves the
option unset:

    PARBAR_TRANSPORT    auto | queue | thread | file
    PARBAR_COUNTER_DIR  directory holding the durable counter file
    PARBAR_ERASE        auto | ansi | backspace
"""

import os
import tempfile
from dataclasses import dataclass

from .errors import InvalidOptionError


DEFAULT_WAIT_MESSAGE = ""
DEFAULT_FINAL_MESSAGE = ""
DEFAULT_MARKER = "*"
DEFAULT_BAR_LENGTH = 20

TRANSPORT_KINDS = ("auto", "queue", "thread", "file")
ERASE_MODES = ("auto", "ansi", "backspace")

ENV_TRANSPORT = "PARBAR_TRANSPORT"
ENV_COUNTER_DIR = "PARBAR_COUNTER_DIR"
ENV_ERASE = "PARBAR_ERASE"

COUNTER_FILE_PREFIX = "parbar_"
COUNTER_FILE_SUFFIX = ".txt"


def _is_int(value):
    # bool is an int subclass but never a valid count
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class WaitBarOptions:
    """
    Validated, immutable settings for one progress bar.

    Attributes:
        total_tasks: Number of units of work (positive integer)
        wait_message: Message shown while waiting when a report carries none
        final_message: Message shown once every task is complete
        marker: Single character used to fill the bar
        bar_length: Number of characters inside the bar brackets
        display_remaining_time: Show the remaining-time estimate
        display_date: Prefix each line with the current date and time
        overwrite: Replace the previous line instead of appending
        show_initial: Print the empty bar at construction
        transport: One of TRANSPORT_KINDS
        counter_dir: Directory for the durable counter file
        erase: One of ERASE_MODES
    """
    total_tasks: int
    wait_message: str = DEFAULT_WAIT_MESSAGE
    final_message: str = DEFAULT_FINAL_MESSAGE
    marker: str = DEFAULT_MARKER
    bar_length: int = DEFAULT_BAR_LENGTH
    display_remaining_time: bool = True
    display_date: bool = True
    overwrite: bool = True
    show_initial: bool = False
    transport: str = "auto"
    counter_dir: str = None
    erase: str = "auto"

    def __post_init__(self):
        if not _is_int(self.total_tasks):
            raise InvalidOptionError("total_tasks", self.total_tasks, "must be an integer")
        if self.total_tasks < 1:
            raise InvalidOptionError("total_tasks", self.total_tasks, "must be at least 1")

        for name in ("wait_message", "final_message"):
            if not isinstance(getattr(self, name), str):
                raise InvalidOptionError(name, getattr(self, name), "must be a string")

        if not isinstance(self.marker, str) or len(self.marker) != 1:
            raise InvalidOptionError("marker", self.marker, "must be a single character")
        if not self.marker.isprintable():
            raise InvalidOptionError("marker", self.marker, "must be printable")

        if not _is_int(self.bar_length):
            raise InvalidOptionError("bar_length", self.bar_length, "must be an integer")
        if self.bar_length < 0:
            raise InvalidOptionError("bar_length", self.bar_length, "must not be negative")

        for name in ("display_remaining_time", "display_date", "overwrite", "show_initial"):
            if not isinstance(getattr(self, name), bool):
                raise InvalidOptionError(name, getattr(self, name), "must be True or False")

        if self.transport not in TRANSPORT_KINDS:
            raise InvalidOptionError(
                "transport", self.transport, f"expected one of {', '.join(TRANSPORT_KINDS)}"
            )
        if self.erase not in ERASE_MODES:
            raise InvalidOptionError(
                "erase", self.erase, f"expected one of {', '.join(ERASE_MODES)}"
            )
        if self.counter_dir is not None and not os.path.isdir(self.counter_dir):
            raise InvalidOptionError("counter_dir", self.counter_dir, "not an existing directory")


def options_from_env(total_tasks, transport=None, counter_dir=None, erase=None, environ=None, **kwargs):
    """
    Build WaitBarOptions, filling unset settings from the environment.

    Args:
        total_tasks: Number of units of work
        transport: Transport kind, or None to use PARBAR_TRANSPORT / "auto"
        counter_dir: Counter directory, or None to use PARBAR_COUNTER_DIR /
            the system temp directory
        erase: Erase mode, or None to use PARBAR_ERASE / "auto"
        environ: Mapping to read instead of os.environ
        **kwargs: Remaining WaitBarOptions fields

    Returns:
        Validated WaitBarOptions

    Raises:
        InvalidOptionError: If any value, explicit or from the environment, is invalid
    """
    env = os.environ if environ is None else environ

    if transport is None:
        transport = env.get(ENV_TRANSPORT, "auto").strip().lower() or "auto"
    if erase is None:
        erase = env.get(ENV_ERASE, "auto").strip().lower() or "auto"
    if counter_dir is None:
        counter_dir = env.get(ENV_COUNTER_DIR) or tempfile.gettempdir()

    return WaitBarOptions(
        total_tasks=total_tasks,
        transport=transport,
        counter_dir=str(counter_dir),
        erase=erase,
        **kwargs
    )
