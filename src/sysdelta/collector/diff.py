"""Stateful conversion of cumulative counters into per-interval deltas."""

from __future__ import annotations

import logging
import threading
from typing import Any

from .base import Sample
from .numeric import Counter
from .series import series_key

logger = logging.getLogger(__name__)


class DiffState:
    """Last raw value seen for every field of every series.

    Entries are created on first sight and never evicted. Only
    :class:`DiffEngine` reads or writes the table, always holding ``lock``.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self._series: dict[str, dict[str, Any]] = {}

    def fields_for(self, key: str) -> dict[str, Any]:
        return self._series.setdefault(key, {})

    def __len__(self) -> int:
        return len(self._series)

    def __contains__(self, key: object) -> bool:
        return key in self._series


class DiffEngine:
    """Turns raw counter samples into deltas against the previous observation.

    The first observation of any field only seeds the state: the sample is
    reported as incomplete (``None``) and must not be emitted. From the
    second observation on, every :class:`Counter` field becomes
    ``(new - last) * consistency_factor`` in its own numeric kind. Other
    field values are recorded but passed through unchanged.
    """

    def __init__(self, state: DiffState | None = None, consistency_factor: float = 1.0) -> None:
        self._state = state if state is not None else DiffState()
        self._factor = consistency_factor

    @property
    def state(self) -> DiffState:
        return self._state

    @property
    def consistency_factor(self) -> float:
        return self._factor

    def diff(self, sample: Sample) -> Sample | None:
        """Return *sample* with its counters replaced by deltas, or ``None``."""
        key = series_key(sample.name, sample.tags)
        complete = True
        fields: dict[str, Any] = {}

        with self._state.lock:
            last_fields = self._state.fields_for(key)
            for field_name, value in sample.fields.items():
                if field_name not in last_fields:
                    last_fields[field_name] = value
                    complete = False
                    continue
                last = last_fields[field_name]
                last_fields[field_name] = value
                if isinstance(value, Counter) and isinstance(last, Counter):
                    fields[field_name] = value.delta(last, self._factor)
                else:
                    fields[field_name] = value

        if not complete:
            logger.debug("Series %s seeded, waiting for a second observation", key)
            return None
        return sample.with_fields(fields)
