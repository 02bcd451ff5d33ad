"""
Interface shared by every event transport.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..models import TraceEvent


class Transport(ABC):
    """Abstract interface for transports that deliver events to the collector."""

    @abstractmethod
    def send(self, event: "TraceEvent") -> None:
        """
        Dispatch an event to the collector.

        Args:
            event: The event to deliver
        """
        pass

    @abstractmethod
    def flush(self) -> None:
        """
        Block until all in-flight work has succeeded or failed terminally.
        """
        pass

    @abstractmethod
    def shutdown(self) -> None:
        """
        Flush pending work and release resources. Safe to call more than once.
        """
        pass
