"""
parbar - a text progress bar for parallel for-loops.

Aggregates completion reports from threads or worker processes into one
progress line on stdout.
"""

from .waitbar import ParWaitBar
from .core.errors import (
    ParBarError, InvalidOptionError, StorageUnavailable, ProgressOverrunError, TransportClosedError
)

__version__ = "1.0.0"

__all__ = [
    'ParWaitBar',
    'ParBarError',
    'InvalidOptionError',
    'StorageUnavailable',
    'ProgressOverrunError',
    'TransportClosedError'
]
