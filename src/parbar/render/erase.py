"""
Strategies for removing the previously printed bar line.

Every line is printed with a trailing newline, so an eraser has to step
back over that newline as well as the text itself.
"""

import logging

logger = logging.getLogger(__name__)

CURSOR_UP = "\033[1A"
ERASE_LINE = "\033[K"


class AnsiEraser:
    """Terminal eraser: move the cursor up one line and clear it."""
    name = "ansi"

    def erase(self, line_length):
        return CURSOR_UP + "\r" + ERASE_LINE


class BackspaceEraser:
    """
    Eraser for consoles without cursor control: one backspace per character
    of the previous line plus one for its newline.
    """
    name = "backspace"

    def erase(self, line_length):
        return "\b" * (line_length + 1)


def _is_terminal(stream):
    isatty = getattr(stream, "isatty", None)
    if isatty is None:
        return False
    try:
        return bool(isatty())
    except ValueError:
        # closed stream
        return False


def select_eraser(mode, stream):
    """
    Choose the erase strategy once, when the renderer is created.

    Args:
        mode: "ansi", "backspace" or "auto"
        stream: Output stream, probed with isatty() in auto mode

    Returns:
        AnsiEraser or BackspaceEraser
    """
    if mode == "ansi":
        return AnsiEraser()
    if mode == "backspace":
        return BackspaceEraser()
    eraser = AnsiEraser() if _is_terminal(stream) else BackspaceEraser()
    logger.debug("Selected %s eraser for %r", eraser.name, stream)
    return eraser
