"""Network interface counters."""

from __future__ import annotations

import time
from typing import Any

import psutil

from .base import BaseCollector, Batch, Sample
from .diff import DiffEngine
from .numeric import machine_int

# /proc/net/dev columns, in order.
NETWORK_FIELDS = (
    "recv_bytes", "recv_packets", "recv_errs", "recv_drop",
    "recv_fifo", "recv_frame", "recv_compressed", "recv_multicast",
    "trans_bytes", "trans_packets", "trans_errs", "trans_drop",
    "trans_fifo", "trans_colls", "trans_carrier", "trans_compressed",
)

# measurement field -> psutil snetio attribute; psutil has no equivalent
# for the remaining columns, which are reported as 0.
NETWORK_ATTRS = {
    "recv_bytes": "bytes_recv",
    "recv_packets": "packets_recv",
    "recv_errs": "errin",
    "recv_drop": "dropin",
    "trans_bytes": "bytes_sent",
    "trans_packets": "packets_sent",
    "trans_errs": "errout",
    "trans_drop": "dropout",
}


def network_fields(nio: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for field in NETWORK_FIELDS:
        attr = NETWORK_ATTRS.get(field)
        fields[field] = machine_int(getattr(nio, attr) if attr else 0)
    return fields


class NetworkCollector(BaseCollector):
    """Per-interface traffic deltas.

    Every interface is reported, loopback included, unless *interface*
    restricts the source to one of them. An interface that appears between
    rounds starts a fresh series and holds the round back until it has been
    seen twice.
    """

    def __init__(self, engine: DiffEngine, interface: str = "") -> None:
        self._engine = engine
        self._interface = interface

    @property
    def name(self) -> str:
        return "network"

    def collect(self) -> Batch:
        now = time.time()
        counters = psutil.net_io_counters(pernic=True)
        if self._interface:
            if self._interface not in counters:
                raise LookupError(f"network interface {self._interface!r} not found")
            counters = {self._interface: counters[self._interface]}

        batch: Batch = []
        for iface, nio in counters.items():
            sample = Sample(
                name="network",
                tags={"iface": iface},
                fields=network_fields(nio),
                timestamp=now,
            )
            batch.append(self._engine.diff(sample))
        return batch
