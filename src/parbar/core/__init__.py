"""
Core state, counters, configuration and shared helpers.
"""

from .errors import (
    ParBarError, InvalidOptionError, StorageUnavailable, ProgressOverrunError, TransportClosedError
)
from .config import WaitBarOptions, options_from_env
from .counter import ProgressCounter, MemoryCounter, FileCounter
from .progress import ProgressState, ProgressEvent, ProgressTracker
from .utils import safe_print, safe_write, setup_encoding, format_duration

__all__ = [
    'ParBarError',
    'InvalidOptionError',
    'StorageUnavailable',
    'ProgressOverrunError',
    'TransportClosedError',
    'WaitBarOptions',
    'options_from_env',
    'ProgressCounter',
    'MemoryCounter',
    'FileCounter',
    'ProgressState',
    'ProgressEvent',
    'ProgressTracker',
    'safe_print',
    'safe_write',
    'setup_encoding',
    'format_duration'
]
