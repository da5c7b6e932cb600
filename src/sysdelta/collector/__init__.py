"""Metric sources, diff engine and collection scheduler."""

from .base import BaseCollector, CollectResult, Sample
from .diff import DiffEngine, DiffState
from .numeric import Counter, NumericKind
from .series import series_key

__all__ = [
    "BaseCollector",
    "CollectResult",
    "Counter",
    "DiffEngine",
    "DiffState",
    "NumericKind",
    "Sample",
    "series_key",
]
