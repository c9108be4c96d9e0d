"""Flush engine: turns aggregated state into Graphite lines.

Collecting a batch mutates the state it reads. Counters move one step along
their decay sequence, gauges fall back to the sentinel and timer buffers are
emptied, so the caller must only collect once it is committed to flushing.
"""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from statsdaemon.core.encoding.graphite import encode_lines, format_line
from statsdaemon.core.models import (
    GAUGE_SENTINEL,
    CounterPhase,
    PercentileSpec,
    counter_phase,
)
from statsdaemon.core.state import AggregationState


@dataclass(frozen=True)
class FlushBatch:
    """Lines produced by one flush.

    Attributes:
        lines: Formatted Graphite lines, each ending in a newline.
        num_stats: Reported counters and gauges plus timer buckets with data.
    """

    lines: list[str] = field(default_factory=list)
    num_stats: int = 0

    @property
    def payload(self) -> bytes:
        """The batch encoded for a single write."""
        return encode_lines(self.lines)


@dataclass(frozen=True)
class TimerSummary:
    """Statistics for one timer bucket over one interval.

    ``mean`` is the middle element of the sorted observations, kept for
    compatibility with existing consumers of the ``.mean`` series.
    """

    lower: int
    upper: int
    mean: int
    count: int
    thresholds: list[tuple[PercentileSpec, int]]


def percentile_index(ratio: float, count: int) -> int:
    """Index of the threshold value in a sorted sequence of ``count`` items.

    Computed as ``ceil(ratio / 100 * count + 0.5)``, clamped to ``count - 1``.
    """
    index = math.ceil((ratio / 100.0) * count + 0.5)
    if index >= count:
        index = count - 1
    return index


def summarize_timer(
    values: Sequence[int], percentiles: Iterable[PercentileSpec]
) -> TimerSummary:
    """Summarize a non-empty sequence of timer observations.

    Raises:
        ValueError: If values is empty.
    """
    if not values:
        raise ValueError("cannot summarize an empty timer buffer")
    ordered = sorted(values)
    count = len(ordered)
    upper = ordered[-1]
    thresholds = []
    for pct in percentiles:
        if count > 1:
            threshold = ordered[percentile_index(pct.ratio, count)]
        else:
            threshold = upper
        thresholds.append((pct, threshold))
    return TimerSummary(
        lower=ordered[0],
        upper=upper,
        mean=ordered[count // 2],
        count=count,
        thresholds=thresholds,
    )


class FlushEngine:
    """Applies the per-kind flush policy to an AggregationState.

    Args:
        percentiles: Percentile thresholds reported for every timer bucket.
        persist_count_keys: Number of flushes an idle counter keeps
            reporting zero before it is frozen.
    """

    def __init__(
        self,
        percentiles: Sequence[PercentileSpec] = (),
        persist_count_keys: int = 60,
    ) -> None:
        if persist_count_keys < 1:
            raise ValueError("persist_count_keys must be positive")
        self._percentiles = tuple(percentiles)
        self._persist_floor = -(persist_count_keys + 1)

    @property
    def persist_floor(self) -> int:
        """Counter values at or below this are expired."""
        return self._persist_floor

    def collect(self, state: AggregationState, now: int) -> FlushBatch:
        """Serialize and reset the state for one flush.

        Args:
            state: Tables to read and advance.
            now: Unix timestamp stamped on every line.

        Returns:
            FlushBatch with the lines and the stat count.
        """
        lines: list[str] = []
        num_stats = self._flush_counters(state, now, lines)
        num_stats += self._flush_gauges(state, now, lines)
        num_stats += self._flush_timers(state, now, lines)
        return FlushBatch(lines=lines, num_stats=num_stats)

    def _flush_counters(
        self, state: AggregationState, now: int, lines: list[str]
    ) -> int:
        num_stats = 0
        for bucket, value in state.counters.items():
            phase = counter_phase(value, self._persist_floor)
            if phase is CounterPhase.EXPIRED:
                continue
            if phase is CounterPhase.DECAYING:
                state.counters[bucket] = value - 1
                lines.append(format_line(bucket, 0, now))
            else:
                state.counters[bucket] = -1
                lines.append(format_line(bucket, value, now))
            num_stats += 1
        return num_stats

    def _flush_gauges(self, state: AggregationState, now: int, lines: list[str]) -> int:
        num_stats = 0
        for bucket, value in state.gauges.items():
            if value == GAUGE_SENTINEL:
                continue
            lines.append(format_line(bucket, value, now))
            state.gauges[bucket] = GAUGE_SENTINEL
            num_stats += 1
        return num_stats

    def _flush_timers(self, state: AggregationState, now: int, lines: list[str]) -> int:
        num_stats = 0
        for bucket, values in state.timers.items():
            if not values:
                continue
            num_stats += 1
            summary = summarize_timer(values, self._percentiles)
            state.timers[bucket] = []
            for pct, threshold in summary.thresholds:
                lines.append(format_line(f"{bucket}.upper_{pct.label}", threshold, now))
            lines.append(format_line(f"{bucket}.mean", summary.mean, now))
            lines.append(format_line(f"{bucket}.upper", summary.upper, now))
            lines.append(format_line(f"{bucket}.lower", summary.lower, now))
            lines.append(format_line(f"{bucket}.count", summary.count, now))
        return num_stats
