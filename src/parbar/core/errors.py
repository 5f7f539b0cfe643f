"""
Exceptions raised by parbar.

Every error derives from ParBarError and from the builtin exception it
specializes, so callers can catch either. Errors pickle with their
attributes intact, so a worker process can hand them back to its pool.
"""


class ParBarError(Exception):
    """Base class for all parbar errors."""


class InvalidOptionError(ParBarError, ValueError):
    """
    A construction parameter or environment override is invalid.
    
    Raised before any resource (queue, manager, counter file) is created.
    """
    
    def __init__(self, name, value, reason):
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value for '{name}': {value!r} ({reason})")

    def __reduce__(self):
        return (type(self), (self.name, self.value, self.reason))


class StorageUnavailable(ParBarError, OSError):
    """
    The durable counter could not be created, opened, locked, read or written.
    
    Fatal for the run: progress can no longer be counted reliably.
    """
    
    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Progress counter unavailable at {self.path}: {reason}")

    def __reduce__(self):
        return (type(self), (self.path, self.reason))


class ProgressOverrunError(ParBarError, RuntimeError):
    """More units of work were reported than the bar was created for."""
    
    def __init__(self, total_tasks, completed_tasks=None):
        self.total_tasks = total_tasks
        self.completed_tasks = total_tasks if completed_tasks is None else completed_tasks
        super().__init__(
            f"Progress reported after completion: {self.completed_tasks} of "
            f"{total_tasks} tasks already counted"
        )

    def __reduce__(self):
        return (type(self), (self.total_tasks, self.completed_tasks))


class TransportClosedError(ParBarError, RuntimeError):
    """Progress was reported through a transport that has already been torn down."""
