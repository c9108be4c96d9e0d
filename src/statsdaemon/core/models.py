"""Core domain models for aggregated metric data."""

import enum
from dataclasses import dataclass

# Gauge value meaning "not updated since the last flush".
GAUGE_SENTINEL = -1


class MetricKind(enum.Enum):
    """Metric kinds accepted on the ingestion protocol."""

    COUNTER = "c"
    GAUGE = "g"
    TIMER = "ms"


class CounterPhase(enum.Enum):
    """Logical state of a counter accumulator.

    The phase is encoded in the sign and magnitude of the accumulator itself:
    ACTIVE for values >= 0, DECAYING between the persist floor and zero,
    EXPIRED at or below the floor.
    """

    ACTIVE = "active"
    DECAYING = "decaying"
    EXPIRED = "expired"


def counter_phase(value: int, floor: int) -> CounterPhase:
    """Return the phase of a counter accumulator.

    Args:
        value: Current accumulator value.
        floor: Negative persist floor; values at or below it are expired.
    """
    if value >= 0:
        return CounterPhase.ACTIVE
    if value > floor:
        return CounterPhase.DECAYING
    return CounterPhase.EXPIRED


@dataclass(frozen=True)
class Sample:
    """A single decoded metric event.

    Attributes:
        bucket: Metric name (e.g., api.requests).
        kind: Counter, gauge or timer.
        value: The raw measurement.
        sample_rate: Fraction of real events this sample represents.
            Only meaningful for counters.
    """

    bucket: str
    kind: MetricKind
    value: int
    sample_rate: float = 1.0


@dataclass(frozen=True)
class PercentileSpec:
    """A configured timer percentile threshold.

    Attributes:
        ratio: Percentile in [0, 100].
        label: Suffix used verbatim in the ``upper_<label>`` output path.
    """

    ratio: float
    label: str

    @classmethod
    def parse(cls, text: str) -> "PercentileSpec":
        """Build a PercentileSpec from its decimal text (e.g. "99.9").

        Raises:
            ValueError: If text is not a number or lies outside [0, 100].
        """
        text = text.strip()
        try:
            ratio = float(text)
        except ValueError:
            raise ValueError(f"invalid percentile threshold: {text!r}") from None
        if not 0 <= ratio <= 100:
            raise ValueError(f"percentile threshold must be in [0, 100]: {text!r}")
        return cls(ratio=ratio, label=text.replace(".", "_"))
