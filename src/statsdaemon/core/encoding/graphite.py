"""Encoder for the Graphite plaintext protocol."""

from collections.abc import Iterable


def format_line(path: str, value: int, timestamp: int) -> str:
    """Format one metric as ``<path> <value> <timestamp>\\n``."""
    return f"{path} {value} {timestamp}\n"


def encode_lines(lines: Iterable[str]) -> bytes:
    """Join formatted lines into a single payload.

    Returns:
        UTF-8 encoded payload. Empty bytes if no lines.
    """
    return "".join(lines).encode("utf-8")
