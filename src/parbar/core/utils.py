"""
Shared helpers for printing progress lines and formatting times.
"""

import sys
import io
import threading
from datetime import datetime

# One lock per process: rendered lines and erase sequences must not interleave
_print_lock = threading.Lock()

DATE_FORMAT = "%d-%b-%Y %H:%M:%S"


def setup_encoding():
    """
    Ensure UTF-8 output so custom markers and messages print on every platform.
    Call this once at the start of a script (the demo CLI does).
    """
    if sys.stdout.encoding and sys.stdout.encoding.lower() != 'utf-8':
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
    if sys.stderr.encoding and sys.stderr.encoding.lower() != 'utf-8':
        sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace')


def safe_print(*args, **kwargs):
    """
    Thread-safe print function.

    Accepts the same arguments as print(), including file= for a target stream.
    """
    with _print_lock:
        print(*args, **kwargs)


def safe_write(stream, *chunks):
    """
    Write raw chunks (erase sequences followed by a line) as one atomic unit.

    Args:
        stream: Text stream to write to
        *chunks: Strings written in order without separators
    """
    with _print_lock:
        for chunk in chunks:
            stream.write(chunk)
        stream.flush()


def format_duration(seconds):
    """
    Format a number of seconds as hh:mm:ss.

    Hours are not wrapped at 24; negative values are clamped to zero.

    Args:
        seconds: Duration in seconds (float)

    Returns:
        String like "01:02:03"
    """
    total = max(int(seconds), 0)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_timestamp(moment=None):
    """Current (or given) datetime in the bar's date format."""
    return (moment or datetime.now()).strftime(DATE_FORMAT)
