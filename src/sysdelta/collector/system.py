"""Uptime and load average gauges."""

from __future__ import annotations

import time

import psutil

from .base import BaseCollector, Batch, Sample


class UptimeCollector(BaseCollector):
    """Seconds since boot."""

    @property
    def name(self) -> str:
        return "uptime"

    def collect(self) -> Batch:
        now = time.time()
        return [Sample(
            name="uptime",
            fields={"length": now - psutil.boot_time()},
            timestamp=now,
        )]


class LoadCollector(BaseCollector):
    """1, 5 and 15 minute load averages."""

    @property
    def name(self) -> str:
        return "load"

    def collect(self) -> Batch:
        one, five, fifteen = psutil.getloadavg()
        return [Sample(
            name="load",
            fields={"one": one, "five": five, "fifteen": fifteen},
            timestamp=time.time(),
        )]
