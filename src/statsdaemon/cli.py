"""Command line entry point for the statsd aggregation daemon."""

import argparse
import asyncio
import logging
import signal

from statsdaemon import __version__
from statsdaemon.adapters.collector import GraphiteCollector
from statsdaemon.adapters.udp import UDPListener
from statsdaemon.core.aggregator import Aggregator
from statsdaemon.core.config import DaemonConfig, parse_address
from statsdaemon.core.models import PercentileSpec
from statsdaemon.core.ports import CollectorPort

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="statsdaemon",
        description="Aggregate statsd metrics and flush them to Graphite",
    )
    parser.add_argument("--address", default=":8125", help="UDP service address")
    parser.add_argument(
        "--graphite",
        default="127.0.0.1:2003",
        help="Graphite service address (or - to disable)",
    )
    parser.add_argument(
        "--flush-interval",
        type=float,
        default=10,
        help="Flush interval (seconds)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="print statistics sent to graphite",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="print version string",
    )
    parser.add_argument(
        "--persist-count-keys",
        type=int,
        default=60,
        help="number of flush-intervals to persist count keys",
    )
    parser.add_argument(
        "--percent-threshold",
        action="append",
        type=PercentileSpec.parse,
        default=[],
        metavar="PERCENT",
        help="Threshold percent (may be given multiple times)",
    )
    return parser


def build_collector(config: DaemonConfig) -> CollectorPort | None:
    """Create the collector adapter for the configured address."""
    if config.graphite_disabled:
        return None
    host, port = parse_address(config.graphite)
    return GraphiteCollector(host or "127.0.0.1", port)


async def run_daemon(
    config: DaemonConfig,
    collector: CollectorPort | None = None,
    shutdown: asyncio.Event | None = None,
) -> None:
    """Run the listener and aggregator until a shutdown request.

    Args:
        config: Daemon configuration.
        collector: Collector override. Defaults to one built from config.
        shutdown: Event that stops the daemon. Defaults to one set by
            SIGTERM or SIGINT.

    Raises:
        OSError: If the listen socket cannot be set up.
    """
    if collector is None:
        collector = build_collector(config)
    aggregator = Aggregator(config, collector)
    listener = UDPListener(config.address, aggregator.queue)
    listener.bind()

    loop = asyncio.get_running_loop()
    if shutdown is None:
        shutdown = asyncio.Event()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, shutdown.set)

    listen_task = asyncio.create_task(listener.serve())
    try:
        await aggregator.run(shutdown)
    finally:
        listen_task.cancel()
        listener.close()


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments

    Returns:
        Exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"statsdaemon v{__version__}")
        return 0

    try:
        config = DaemonConfig(
            address=args.address,
            graphite=args.graphite,
            flush_interval=args.flush_interval,
            debug=args.debug,
            persist_count_keys=args.persist_count_keys,
            percentiles=tuple(args.percent_threshold),
        )
    except ValueError as exc:
        parser.error(str(exc))

    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(run_daemon(config))
    except OSError as exc:
        logger.critical("ListenAndServe: %s", exc)
        return 1
    return 0
