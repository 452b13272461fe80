"""Abstract interface for the online/offline connectivity signal."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class NetworkStatus:
    """Snapshot of the terminal's connectivity."""

    is_online: bool
    is_slow_connection: bool = False
    last_online_time: datetime | None = None
    last_offline_time: datetime | None = None


StatusListener = Callable[[NetworkStatus], None]


class IConnectivitySignal(ABC):
    """Boolean online/offline observable."""

    @property
    @abstractmethod
    def is_online(self) -> bool:
        """Current connectivity."""
        pass

    @abstractmethod
    def status(self) -> NetworkStatus:
        """Full connectivity snapshot."""
        pass

    @abstractmethod
    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """
        Register a listener for status changes.

        The listener is called immediately with the current status.
        Returns a function that unsubscribes it.
        """
        pass
