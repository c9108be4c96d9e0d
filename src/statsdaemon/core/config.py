"""Daemon configuration."""

from dataclasses import dataclass

from statsdaemon.core.models import PercentileSpec

DISABLED_ADDRESS = "-"


def parse_address(address: str) -> tuple[str, int]:
    """Split a ``host:port`` address.

    An empty host (e.g. ``":8125"``) is returned as ``""``, meaning all
    interfaces when listening.

    Raises:
        ValueError: If the port is missing or not a valid port number.
    """
    host, sep, port_text = address.rpartition(":")
    if not sep:
        raise ValueError(f"address must be host:port: {address!r}")
    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"invalid port in address: {address!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range in address: {address!r}")
    return host.strip("[]"), port


@dataclass(frozen=True)
class DaemonConfig:
    """Runtime settings consumed by the aggregator.

    Attributes:
        address: UDP address to listen on.
        graphite: Collector address, or "-" to disable sending.
        flush_interval: Seconds between flushes.
        debug: Log every emitted line and keep flushing when the
            collector is unreachable.
        persist_count_keys: Flushes an idle counter keeps reporting zero.
        percentiles: Timer percentile thresholds.
        queue_size: Capacity of the ingestion queue.
    """

    address: str = ":8125"
    graphite: str = "127.0.0.1:2003"
    flush_interval: float = 10
    debug: bool = False
    persist_count_keys: int = 60
    percentiles: tuple[PercentileSpec, ...] = ()
    queue_size: int = 1000

    def __post_init__(self) -> None:
        if self.flush_interval <= 0:
            raise ValueError("flush_interval must be positive")
        if self.persist_count_keys < 1:
            raise ValueError("persist_count_keys must be positive")
        if self.queue_size < 1:
            raise ValueError("queue_size must be positive")
        parse_address(self.address)
        if not self.graphite_disabled:
            parse_address(self.graphite)

    @property
    def graphite_disabled(self) -> bool:
        """True when no collector should be contacted."""
        return self.graphite == DISABLED_ADDRESS
