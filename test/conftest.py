#!/usr/bin/env python3
"""
Pytest configuration and shared fixtures.
"""

import io
import pytest
import sys
from pathlib import Path

# Add src to path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from parbar.core.config import WaitBarOptions  # noqa: E402

CURSOR_UP = "\033[1A"
ERASE_LINE = "\033[K"


def visible_lines(text):
    """
    Replay terminal output and return the non-empty lines left on screen.

    Understands newlines, carriage returns, backspaces (which may step back
    over a newline, as in consoles without cursor control), cursor-up and
    erase-line sequences.
    """
    lines = [""]
    row = 0
    i = 0
    while i < len(text):
        if text.startswith(CURSOR_UP, i):
            row = max(row - 1, 0)
            i += len(CURSOR_UP)
            continue
        if text.startswith(ERASE_LINE, i):
            lines[row] = ""
            i += len(ERASE_LINE)
            continue
        ch = text[i]
        if ch == "\n":
            row += 1
            if row == len(lines):
                lines.append("")
        elif ch == "\b":
            if lines[row]:
                lines[row] = lines[row][:-1]
            elif row > 0:
                lines.pop(row)
                row -= 1
        elif ch != "\r":
            lines[row] += ch
        i += 1
    return [line for line in lines if line]


@pytest.fixture
def screen():
    """Return the visible_lines helper."""
    return visible_lines


@pytest.fixture
def stream():
    """In-memory output stream (not a terminal, so the backspace eraser is chosen)."""
    return io.StringIO()


@pytest.fixture
def counter_dir(tmp_path):
    """Directory for durable counter files."""
    directory = tmp_path / "counters"
    directory.mkdir()
    return directory


@pytest.fixture
def make_options(counter_dir):
    """
    Factory for WaitBarOptions with quiet, deterministic defaults.

    Date display is off so lines can be compared exactly.
    """
    def _make(total_tasks=5, **kwargs):
        kwargs.setdefault("display_date", False)
        kwargs.setdefault("transport", "thread")
        kwargs.setdefault("counter_dir", str(counter_dir))
        return WaitBarOptions(total_tasks=total_tasks, **kwargs)
    return _make
