"""UDP listener that feeds decoded samples to the aggregator queue."""

import asyncio
import logging
import socket

from statsdaemon.core.config import parse_address
from statsdaemon.core.encoding.statsd import parse_packet
from statsdaemon.core.models import Sample

logger = logging.getLogger(__name__)

MAX_DATAGRAM_SIZE = 512


class UDPListener:
    """Receives statsd datagrams and enqueues their samples.

    ``queue.put`` is awaited for every sample, so a full queue stalls the
    receive loop instead of dropping samples in-process.

    Args:
        address: ``host:port`` to bind; an empty host binds all interfaces.
        queue: Aggregator ingestion queue.
    """

    def __init__(self, address: str, queue: asyncio.Queue[Sample]) -> None:
        self._address = address
        self._queue = queue
        self._sock: socket.socket | None = None

    @property
    def local_address(self) -> tuple[str, int]:
        """Address the socket is bound to."""
        if self._sock is None:
            raise RuntimeError("listener is not bound")
        host, port = self._sock.getsockname()[:2]
        return host, port

    def bind(self) -> None:
        """Create and bind the UDP socket.

        Raises:
            OSError: If the address cannot be resolved or bound.
        """
        host, port = parse_address(self._address)
        infos = socket.getaddrinfo(
            host or None,
            port,
            type=socket.SOCK_DGRAM,
            flags=socket.AI_PASSIVE,
        )
        family, type_, proto, _, sockaddr = infos[0]
        sock = socket.socket(family, type_, proto)
        try:
            sock.setblocking(False)
            sock.bind(sockaddr)
        except OSError:
            sock.close()
            raise
        self._sock = sock
        logger.info("Listening on %s:%d", *self.local_address)

    async def serve(self) -> None:
        """Receive datagrams until cancelled."""
        if self._sock is None:
            self.bind()
        assert self._sock is not None
        loop = asyncio.get_running_loop()
        try:
            while True:
                try:
                    data, _ = await loop.sock_recvfrom(
                        self._sock, MAX_DATAGRAM_SIZE
                    )
                except OSError as exc:
                    logger.warning("error reading datagram: %s", exc)
                    continue
                for sample in parse_packet(data):
                    await self._queue.put(sample)
        finally:
            self.close()

    def close(self) -> None:
        """Close the socket."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None
