"""Memory and swap gauges."""

from __future__ import annotations

import time

import psutil

from .base import BaseCollector, Batch, Sample
from .numeric import uint64


class MemoryCollector(BaseCollector):
    """Physical memory usage in bytes.

    ``free``/``used`` are the kernel's raw figures, ``actualfree`` and
    ``actualused`` account for reclaimable buffers and caches.
    """

    @property
    def name(self) -> str:
        return "mem"

    def collect(self) -> Batch:
        mem = psutil.virtual_memory()
        return [Sample(
            name="mem",
            fields={
                "free": uint64(mem.free),
                "used": uint64(mem.total - mem.free),
                "actualfree": uint64(mem.available),
                "actualused": uint64(mem.total - mem.available),
                "total": uint64(mem.total),
            },
            timestamp=time.time(),
        )]


class SwapCollector(BaseCollector):
    """Swap usage in bytes."""

    @property
    def name(self) -> str:
        return "swap"

    def collect(self) -> Batch:
        swap = psutil.swap_memory()
        return [Sample(
            name="swap",
            fields={
                "free": uint64(swap.free),
                "used": uint64(swap.used),
                "total": uint64(swap.total),
            },
            timestamp=time.time(),
        )]
