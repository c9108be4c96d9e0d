"""In-memory aggregation tables for counters, gauges and timers."""

import copy
import struct

from statsdaemon.core.models import MetricKind, Sample

Snapshot = tuple[dict[str, int], dict[str, int], dict[str, list[int]]]

_FLOAT32 = struct.Struct("f")


def _float32(value: float) -> float:
    """Round a value to the nearest IEEE 754 single-precision float."""
    return _FLOAT32.unpack(_FLOAT32.pack(value))[0]


def counter_weight(value: int, sample_rate: float) -> int:
    """Scale a counter value by the inverse of its sample rate.

    The scaling is done in single precision and truncated toward zero, so
    that e.g. ``13|c|@0.13`` counts as 100 rather than the 99 that double
    precision yields.
    """
    inverse = _float32(1 / _float32(sample_rate))
    return int(_float32(_float32(value) * inverse))


class AggregationState:
    """Owns the three per-bucket tables.

    Entries are created lazily on the first sample for a bucket and are never
    removed. Only the aggregator task may touch an instance; there is no
    locking.
    """

    def __init__(self) -> None:
        self.counters: dict[str, int] = {}
        self.gauges: dict[str, int] = {}
        self.timers: dict[str, list[int]] = {}

    def apply(self, sample: Sample) -> None:
        """Fold a decoded sample into the tables.

        Timers append, gauges overwrite. Counters are scaled by the inverse
        sample rate and truncated; a new bucket or one that has already been
        reported (negative accumulator) restarts from zero.
        """
        if sample.kind is MetricKind.TIMER:
            self.timers.setdefault(sample.bucket, []).append(sample.value)
        elif sample.kind is MetricKind.GAUGE:
            self.gauges[sample.bucket] = sample.value
        else:
            weight = counter_weight(sample.value, sample.sample_rate)
            current = self.counters.get(sample.bucket, 0)
            if current < 0:
                current = 0
            self.counters[sample.bucket] = current + weight

    def snapshot(self) -> Snapshot:
        """Return a deep copy of the counter, gauge and timer tables."""
        return (
            dict(self.counters),
            dict(self.gauges),
            copy.deepcopy(self.timers),
        )
