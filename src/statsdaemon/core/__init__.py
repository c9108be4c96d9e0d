"""Core aggregation engine: decoding, state and flush policy."""
