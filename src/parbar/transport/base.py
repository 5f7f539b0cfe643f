"""
Common interface of progress transports.
"""

from abc import ABC, abstractmethod


class Transport(ABC):
    """
    Delivers ProgressEvents from workers to the ProgressTracker.

    A transport is chosen once, when the bar is built, and never changes.
    """
    kind = None

    def __init__(self, counter):
        self.counter = counter
        self.tracker = None

    def bind(self, tracker):
        """Attach the tracker that consumes events; called once by the owner."""
        self.tracker = tracker

    @abstractmethod
    def send(self, event):
        """Report one completed unit of work."""

    @abstractmethod
    def close(self):
        """Release resources. Idempotent."""

    @abstractmethod
    def completed_tasks(self):
        """Number of units counted so far, as seen from this context."""

    def join(self, timeout=None):
        """
        Wait until every delivered event has been consumed.

        Returns:
            True if nothing is left pending
        """
        return True
