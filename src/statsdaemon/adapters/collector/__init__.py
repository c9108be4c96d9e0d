"""Collector adapters."""

from statsdaemon.adapters.collector.graphite import GraphiteCollector
from statsdaemon.adapters.collector.in_memory import InMemoryCollector

__all__ = [
    "GraphiteCollector",
    "InMemoryCollector",
]
