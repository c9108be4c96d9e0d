"""Port interfaces for collector adapters.

The aggregator depends only on these protocols, not on a concrete transport.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class CollectorSession(Protocol):
    """An open connection to a downstream collector."""

    async def send(self, payload: bytes) -> None:
        """Write one batch of lines."""
        ...

    async def close(self) -> None:
        """Release the connection."""
        ...


@runtime_checkable
class CollectorPort(Protocol):
    """Port for downstream collectors.

    Adapters implementing this protocol open one session per flush.
    Examples: GraphiteCollector, InMemoryCollector.
    """

    async def open(self) -> CollectorSession:
        """Open a session.

        Raises:
            OSError: If the collector cannot be reached.
        """
        ...
