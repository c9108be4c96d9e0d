"""Transport adapters for the listener and the collector."""
