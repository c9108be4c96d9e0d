"""TCP adapter for Graphite's plaintext receiver."""

import asyncio
import logging

logger = logging.getLogger(__name__)


class GraphiteSession:
    """One TCP connection to a Graphite receiver."""

    def __init__(self, writer: asyncio.StreamWriter) -> None:
        self._writer = writer

    async def send(self, payload: bytes) -> None:
        """Write one batch and wait for it to drain."""
        self._writer.write(payload)
        await self._writer.drain()

    async def close(self) -> None:
        """Close the connection."""
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as exc:
            logger.debug("error closing collector connection: %s", exc)


class GraphiteCollector:
    """Implementation of CollectorPort over TCP.

    A new connection is opened for every flush.

    Args:
        host: Collector host.
        port: Collector port.
        timeout: Optional connect timeout in seconds. None leaves it to the
            operating system.
    """

    def __init__(self, host: str, port: int, timeout: float | None = None) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout

    def __str__(self) -> str:
        return f"{self._host}:{self._port}"

    async def open(self) -> GraphiteSession:
        """Connect to the collector.

        Raises:
            OSError: If the connection fails or times out.
        """
        # TimeoutError is an OSError subclass, so callers handle both alike.
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(self._host, self._port), self._timeout
        )
        return GraphiteSession(writer)
