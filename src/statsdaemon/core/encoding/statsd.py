"""Decoder for the statsd line protocol.

Each line has the form ``<bucket>:<value>|<kind>[|@<sample_rate>]`` where
kind is one of ``c``, ``g`` or ``ms``. Lines that do not match are dropped
without error.
"""

import re

from statsdaemon.core.models import MetricKind, Sample

_LINE_RE = re.compile(r"^([^:]+):([0-9]+)\|(g|c|ms)(\|@([0-9.]+))?\n?$")

_INT64_MAX = 2**63 - 1


def _parse_value(text: str, kind: MetricKind) -> int:
    """Parse the value field, falling back when it overflows int64."""
    value = int(text)
    if value > _INT64_MAX:
        return 0 if kind is MetricKind.TIMER else 1
    return value


def _parse_sample_rate(text: str | None) -> float:
    """Parse the sample rate, defaulting to 1.0 when absent or invalid."""
    if not text:
        return 1.0
    try:
        rate = float(text)
    except ValueError:
        return 1.0
    if not 0 < rate <= 1:
        return 1.0
    return rate


def parse_line(line: str) -> Sample | None:
    """Decode a single protocol line.

    Args:
        line: One line of text, optionally ending in a newline.

    Returns:
        The decoded Sample, or None if the line does not match the grammar.
    """
    match = _LINE_RE.match(line)
    if match is None:
        return None
    bucket, raw_value, raw_kind, _, raw_rate = match.groups()
    kind = MetricKind(raw_kind)
    return Sample(
        bucket=bucket,
        kind=kind,
        value=_parse_value(raw_value, kind),
        sample_rate=_parse_sample_rate(raw_rate),
    )


def parse_packet(data: bytes | str) -> list[Sample]:
    """Decode every line of a datagram payload.

    Args:
        data: Raw datagram payload. Bytes are decoded as UTF-8 with
            invalid sequences replaced.

    Returns:
        Decoded samples in input order. Malformed lines are skipped.
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    samples = []
    for line in data.split("\n"):
        if not line:
            continue
        sample = parse_line(line)
        if sample is not None:
            samples.append(sample)
    return samples
