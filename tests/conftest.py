"""Shared test fixtures for all test modules."""

from collections.abc import Callable

import pytest

from statsdaemon.adapters.collector import InMemoryCollector
from statsdaemon.core.aggregator import Aggregator
from statsdaemon.core.config import DaemonConfig
from statsdaemon.core.flush import FlushEngine
from statsdaemon.core.models import MetricKind, PercentileSpec, Sample
from statsdaemon.core.state import AggregationState

NOW = 1_700_000_000


@pytest.fixture
def now() -> int:
    """Fixed unix timestamp stamped on flushed lines."""
    return NOW


@pytest.fixture
def state() -> AggregationState:
    """Fresh, empty aggregation state."""
    return AggregationState()


@pytest.fixture
def engine() -> FlushEngine:
    """Flush engine with a 90th percentile and a two-flush persist window."""
    return FlushEngine([PercentileSpec.parse("90")], persist_count_keys=2)


@pytest.fixture
def collector() -> InMemoryCollector:
    """Collector that records payloads in memory."""
    return InMemoryCollector()


@pytest.fixture
def make_config() -> Callable[..., DaemonConfig]:
    """Factory fixture for DaemonConfig with test-friendly defaults.

    Usage:
        def test_something(make_config):
            config = make_config(debug=True)
    """

    def _config(**overrides: object) -> DaemonConfig:
        values: dict[str, object] = {
            "address": "127.0.0.1:0",
            "graphite": "127.0.0.1:2003",
            "flush_interval": 10,
            "persist_count_keys": 2,
            "percentiles": (PercentileSpec.parse("90"),),
        }
        values.update(overrides)
        return DaemonConfig(**values)  # type: ignore[arg-type]

    return _config


@pytest.fixture
def aggregator(
    make_config: Callable[..., DaemonConfig], collector: InMemoryCollector
) -> Aggregator:
    """Aggregator wired to the in-memory collector."""
    return Aggregator(make_config(), collector)


@pytest.fixture
def sample() -> Callable[..., Sample]:
    """Factory fixture for samples.

    Usage:
        sample("api.hits", 5, "c", 0.5)
    """

    def _sample(
        bucket: str, value: int, kind: str = "c", sample_rate: float = 1.0
    ) -> Sample:
        return Sample(
            bucket=bucket,
            kind=MetricKind(kind),
            value=value,
            sample_rate=sample_rate,
        )

    return _sample
