"""
Text rendering of the progress bar.

Line layout while waiting:

    [date - ][message - ][Remaining:hh:mm:ss ]PPP% [****      ]

and once every task is complete:

    [date - ][final message - ]Total:hh:mm:ss 100% [**********]
"""

import sys
from dataclasses import dataclass, astuple
from datetime import datetime

from ..core.utils import safe_write, format_duration, format_timestamp
from .erase import select_eraser

SEPARATOR = " - "


@dataclass
class RenderState:
    """
    Bookkeeping owned by the renderer.

    Attributes:
        last_line_length: Characters in the previously printed line
        max_message_width: Longest message shown so far
        lines_printed: Lines written to the stream
    """
    last_line_length: int = 0
    max_message_width: int = 0
    lines_printed: int = 0


class Renderer:
    """
    Formats ProgressState into a line and writes it, overwriting the
    previous line when overwrite mode is on.
    """

    def __init__(self, options, stream=None):
        """
        Args:
            options: WaitBarOptions (marker, bar_length, display flags, erase mode)
            stream: Output stream; None means the current sys.stdout at print time
        """
        self.options = options
        self._stream = stream
        self.eraser = select_eraser(options.erase, self.stream)
        self.render_state = RenderState()

    def __getstate__(self):
        state = self.__dict__.copy()
        # a copy living in a worker process prints to that process's stdout
        state['_stream'] = None
        return state

    @property
    def stream(self):
        return self._stream if self._stream is not None else sys.stdout

    def shared_fields(self):
        """RenderState as a tuple of integers, for storage next to a durable counter."""
        return astuple(self.render_state)

    def load_shared(self, fields):
        """
        Adopt the bookkeeping left by whichever process printed last.

        An empty or malformed tuple keeps the local state.
        """
        if len(fields) == len(astuple(self.render_state)):
            self.render_state = RenderState(*fields)

    def _message_field(self, message):
        message = message or ""
        width = max(len(message), self.render_state.max_message_width)
        self.render_state.max_message_width = width
        if width == 0:
            return ""
        return message.ljust(width) + SEPARATOR

    def _time_field(self, state, now):
        if state.is_complete:
            return f"Total:{format_duration(state.elapsed(now))} "
        if not self.options.display_remaining_time:
            return ""
        remaining = state.remaining(now)
        if remaining is None:
            return ""
        return f"Remaining:{format_duration(remaining)} "

    def _bar_field(self, state):
        length = self.options.bar_length
        filled = min(state.filled(length), length)
        return "[" + self.options.marker * filled + " " * (length - filled) + "]"

    def format_line(self, state, message, now=None):
        """
        Build the line for the given state.

        Updates max_message_width, so every later line pads its message
        field at least as wide as the longest one shown so far.

        Args:
            state: ProgressState to display
            message: Text for the message field (may be empty)
            now: Wall-clock time (seconds since epoch) for the date and
                time fields, instead of the current time

        Returns:
            The formatted line without a trailing newline
        """
        date = ""
        if self.options.display_date:
            moment = datetime.fromtimestamp(now) if now is not None else None
            date = format_timestamp(moment) + SEPARATOR
        return (
            date
            + self._message_field(message)
            + self._time_field(state, now)
            + f"{state.percent:3d}% "
            + self._bar_field(state)
        )

    def render(self, state, message, now=None):
        """
        Print the bar for the given state.

        Returns:
            The printed line
        """
        line = self.format_line(state, message, now)
        chunks = []
        if self.options.overwrite and self.render_state.lines_printed > 0:
            chunks.append(self.eraser.erase(self.render_state.last_line_length))
        chunks.append(line + "\n")
        safe_write(self.stream, *chunks)

        self.render_state.last_line_length = len(line)
        self.render_state.lines_printed += 1
        return line
