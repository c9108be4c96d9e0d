"""statsdaemon - statsd metric aggregation daemon with a Graphite backend."""

from statsdaemon.adapters.collector import GraphiteCollector, InMemoryCollector
from statsdaemon.core.aggregator import Aggregator
from statsdaemon.core.config import DaemonConfig
from statsdaemon.core.encoding.statsd import parse_line, parse_packet
from statsdaemon.core.flush import FlushBatch, FlushEngine
from statsdaemon.core.models import MetricKind, PercentileSpec, Sample
from statsdaemon.core.state import AggregationState

__version__ = "0.4.4"

__all__ = [
    "AggregationState",
    "Aggregator",
    "DaemonConfig",
    "FlushBatch",
    "FlushEngine",
    "GraphiteCollector",
    "InMemoryCollector",
    "MetricKind",
    "PercentileSpec",
    "Sample",
    "parse_line",
    "parse_packet",
]
