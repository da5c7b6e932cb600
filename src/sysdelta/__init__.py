"""sysdelta – periodic system counters as per-interval deltas."""

__version__ = "0.1.0"
