"""Block device I/O counters and mounted filesystem usage."""

from __future__ import annotations

import time

import psutil

from .base import BaseCollector, Batch, Sample
from .diff import DiffEngine
from .numeric import machine_int, uint64

SECTOR_SIZE = 512

# Virtual and system filesystems that carry no useful capacity figures.
IGNORED_FSTYPES = frozenset({
    "binfmt_misc", "cgroup", "configfs", "debugfs", "devpts", "devtmpfs",
    "efivarfs", "fusectl", "mqueue", "none", "proc", "rootfs", "securityfs",
    "sysfs", "rpc_pipefs", "fuse.gvfsd-fuse", "tmpfs",
})


class DisksCollector(BaseCollector):
    """Per-device I/O deltas.

    Fields psutil does not expose on the current platform are reported
    as zero; ``in_flight`` and ``time_in_queue`` are never exposed.
    """

    def __init__(self, engine: DiffEngine) -> None:
        self._engine = engine

    @property
    def name(self) -> str:
        return "disks"

    def collect(self) -> Batch:
        now = time.time()
        counters = psutil.disk_io_counters(perdisk=True) or {}

        batch: Batch = []
        for device, io in counters.items():
            fields = {
                "read_ios": machine_int(io.read_count),
                "read_merges": machine_int(getattr(io, "read_merged_count", 0)),
                "read_sectors": machine_int(io.read_bytes // SECTOR_SIZE),
                "read_ticks": machine_int(io.read_time),
                "write_ios": machine_int(io.write_count),
                "write_merges": machine_int(getattr(io, "write_merged_count", 0)),
                "write_sectors": machine_int(io.write_bytes // SECTOR_SIZE),
                "write_ticks": machine_int(io.write_time),
                "in_flight": machine_int(0),
                "io_ticks": machine_int(getattr(io, "busy_time", 0)),
                "time_in_queue": machine_int(0),
            }
            batch.append(self._engine.diff(Sample(
                name="disks",
                tags={"device": device},
                fields=fields,
                timestamp=now,
            )))
        return batch


class MountsCollector(BaseCollector):
    """Free and total bytes of every real mounted filesystem."""

    def __init__(self, engine: DiffEngine) -> None:
        self._engine = engine

    @property
    def name(self) -> str:
        return "mounts"

    def collect(self) -> Batch:
        now = time.time()
        batch: Batch = []
        for part in psutil.disk_partitions(all=True):
            if part.fstype in IGNORED_FSTYPES or part.device == "none":
                continue
            usage = psutil.disk_usage(part.mountpoint)
            batch.append(self._engine.diff(Sample(
                name="mounts",
                tags={"disk": part.device, "mountpoint": part.mountpoint},
                fields={"free": uint64(usage.free), "total": uint64(usage.total)},
                timestamp=now,
            )))
        return batch
