"""BDD tests for the flush cycle."""

import asyncio
from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from statsdaemon.adapters.collector import InMemoryCollector
from statsdaemon.core.aggregator import Aggregator
from statsdaemon.core.config import DaemonConfig
from statsdaemon.core.encoding.statsd import parse_packet
from statsdaemon.core.models import MetricKind, PercentileSpec, Sample

scenarios("flush_cycle.feature")

pytestmark = [
    pytest.mark.tier(1),
    pytest.mark.tra("Flush.Cycle"),
]

NOW = 1_700_000_000


@dataclass
class FlushScenarioContext:
    """State shared between steps of one scenario."""

    collector: InMemoryCollector = field(default_factory=InMemoryCollector)
    aggregator: Aggregator | None = None


def run_async(coro):  # type: ignore[no-untyped-def]
    """Run a coroutine from a synchronous step."""
    return asyncio.run(coro)


@pytest.fixture
def ctx() -> FlushScenarioContext:
    """Fresh scenario context for each test."""
    return FlushScenarioContext()


def _aggregator(ctx: FlushScenarioContext) -> Aggregator:
    assert ctx.aggregator is not None
    return ctx.aggregator


def _writes(ctx: FlushScenarioContext) -> list[list[str]]:
    return [
        [" ".join(line.split()[:2]) for line in payload.decode().splitlines()]
        for payload in ctx.collector.payloads
    ]


# === Given ===


@given(
    parsers.parse(
        "an aggregator with a persist window of {window:d} and a {pct:d}th percentile"
    )
)
def given_aggregator(ctx: FlushScenarioContext, window: int, pct: int) -> None:
    config = DaemonConfig(
        persist_count_keys=window,
        percentiles=(PercentileSpec.parse(str(pct)),),
    )
    ctx.aggregator = Aggregator(config, ctx.collector)


# === When ===


@when(parsers.parse('the datagram "{payload}" is received'))
def when_datagram_received(ctx: FlushScenarioContext, payload: str) -> None:
    for sample in parse_packet(payload.encode()):
        _aggregator(ctx).ingest(sample)


@when(parsers.parse('the timer "{bucket}" receives the values {low:d} to {high:d}'))
def when_timer_values(
    ctx: FlushScenarioContext, bucket: str, low: int, high: int
) -> None:
    for value in range(low, high + 1):
        _aggregator(ctx).ingest(Sample(bucket, MetricKind.TIMER, value))


@when("a flush runs")
def when_flush_runs(ctx: FlushScenarioContext) -> None:
    run_async(_aggregator(ctx).flush(now=NOW))


@when("the collector is unreachable")
def when_collector_unreachable(ctx: FlushScenarioContext) -> None:
    ctx.collector.refuse = True


@when("the collector comes back")
def when_collector_back(ctx: FlushScenarioContext) -> None:
    ctx.collector.refuse = False


# === Then ===


@then(parsers.parse('the collector receives "{expected}"'))
def then_collector_receives(ctx: FlushScenarioContext, expected: str) -> None:
    assert expected in [line for write in _writes(ctx) for line in write]


@then(parsers.parse("the collector received {n:d} writes"))
def then_write_count(ctx: FlushScenarioContext, n: int) -> None:
    assert len(ctx.collector.payloads) == n


@then(parsers.parse('write {index:d} is "{expected}"'))
def then_write_is(ctx: FlushScenarioContext, index: int, expected: str) -> None:
    assert _writes(ctx)[index - 1] == [expected]
