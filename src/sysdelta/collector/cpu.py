"""CPU tick sources, aggregated and per logical CPU."""

from __future__ import annotations

import time
from typing import Any

import psutil

from .base import BaseCollector, Batch, Sample
from .diff import DiffEngine
from .numeric import uint64

# psutil reports CPU times in seconds; the counters are kept in USER_HZ ticks.
TICKS_PER_SECOND = 100

# guest and guest_nice are already included in user and nice.
TOTAL_TIMES = ("user", "nice", "system", "idle", "iowait", "irq", "softirq", "steal")


def _ticks(seconds: float) -> int:
    return int(round(seconds * TICKS_PER_SECOND))


def cpu_fields(times: Any) -> dict[str, Any]:
    """Map a psutil ``scputimes`` tuple onto the cpu measurement fields."""
    return {
        "user": uint64(_ticks(times.user)),
        "nice": uint64(_ticks(getattr(times, "nice", 0.0))),
        "sys": uint64(_ticks(times.system)),
        "idle": uint64(_ticks(times.idle)),
        "wait": uint64(_ticks(getattr(times, "iowait", 0.0))),
        "total": uint64(_ticks(sum(getattr(times, name, 0.0) for name in TOTAL_TIMES))),
    }


class CpuCollector(BaseCollector):
    """Aggregated CPU ticks across all cores."""

    def __init__(self, engine: DiffEngine) -> None:
        self._engine = engine

    @property
    def name(self) -> str:
        return "cpu"

    def collect(self) -> Batch:
        sample = Sample(
            name="cpu",
            tags={"cpuid": "all"},
            fields=cpu_fields(psutil.cpu_times()),
            timestamp=time.time(),
        )
        return [self._engine.diff(sample)]


class CpusCollector(BaseCollector):
    """CPU ticks for every logical CPU."""

    def __init__(self, engine: DiffEngine) -> None:
        self._engine = engine

    @property
    def name(self) -> str:
        return "cpus"

    def collect(self) -> Batch:
        now = time.time()
        return [
            self._engine.diff(Sample(
                name="cpus",
                tags={"cpuid": str(idx)},
                fields=cpu_fields(times),
                timestamp=now,
            ))
            for idx, times in enumerate(psutil.cpu_times(percpu=True))
        ]
