"""Collection scheduler: runs every source concurrently once per round."""

from __future__ import annotations

import logging
import socket
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable

from ..config import CollectorConfig, ConfigError
from .base import BaseCollector, CollectResult, Sample
from .cpu import CpuCollector, CpusCollector
from .diff import DiffEngine, DiffState
from .disks import DisksCollector, MountsCollector
from .memory import MemoryCollector, SwapCollector
from .network import NetworkCollector
from .system import LoadCollector, UptimeCollector

logger = logging.getLogger(__name__)

Sink = Callable[[list[Sample]], None]


def build_collectors(config: CollectorConfig, engine: DiffEngine) -> list[BaseCollector]:
    """Instantiate the sources named in ``config.collect``, in order."""
    factories: dict[str, Callable[[], BaseCollector]] = {
        "cpu": lambda: CpuCollector(engine),
        "cpus": lambda: CpusCollector(engine),
        "mem": MemoryCollector,
        "swap": SwapCollector,
        "uptime": UptimeCollector,
        "load": LoadCollector,
        "network": lambda: NetworkCollector(engine, interface=config.network_interface),
        "disks": lambda: DisksCollector(engine),
        "mounts": lambda: MountsCollector(engine),
    }
    collectors: list[BaseCollector] = []
    for name in config.collect:
        factory = factories.get(name)
        if factory is None:
            raise ConfigError(f"Unknown collect option {name!r} (choose from {', '.join(factories)})")
        collectors.append(factory())
    return collectors


def resolve_hostname(configured: str = "") -> str:
    """Return *configured* or, when empty, this host's fully qualified name."""
    return configured or socket.getfqdn()


@dataclass
class RoundResult:
    """Outcome of one collection round."""

    complete: bool
    samples: list[Sample] = field(default_factory=list)
    errors: dict[str, BaseException] = field(default_factory=dict)


class CollectorManager:
    """Runs metric sources in rounds and hands complete rounds to sinks.

    Each round every source runs on its own worker thread and the manager
    waits for all of them. A round is complete only when every source
    reported at least one sample and none of those samples was held back by
    the diff engine. Incomplete rounds are retried straight away; complete
    rounds are emitted and, in daemon mode, followed by one interval of
    sleep.

    Register sinks via :meth:`add_sink`, then either call :meth:`run` on the
    current thread or :meth:`start` / :meth:`stop` for a background thread.
    """

    def __init__(
        self,
        config: CollectorConfig,
        collectors: list[BaseCollector] | None = None,
        engine: DiffEngine | None = None,
    ) -> None:
        if config.interval_seconds <= 0:
            raise ConfigError("collector.interval_seconds must be positive")
        self._config = config
        self._engine = engine or DiffEngine(DiffState(), consistency_factor=config.consistency_factor)
        self._collectors = collectors if collectors is not None else build_collectors(config, self._engine)
        if not self._collectors:
            raise ConfigError("No metric sources configured")
        self._sinks: list[Sink] = []
        self._hostname = resolve_hostname(config.hostname) if config.tag_host else ""
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._pool = ThreadPoolExecutor(
            max_workers=len(self._collectors),
            thread_name_prefix="sysdelta-source",
        )
        self.rounds = 0
        self.emitted_rounds = 0

    @property
    def engine(self) -> DiffEngine:
        return self._engine

    @property
    def collectors(self) -> list[BaseCollector]:
        return list(self._collectors)

    def add_sink(self, sink: Sink) -> None:
        """Register a callback to receive every complete round."""
        self._sinks.append(sink)

    @staticmethod
    def _gather(collector: BaseCollector) -> CollectResult:
        try:
            return CollectResult(source=collector.name, samples=collector.collect())
        except Exception as exc:  # noqa: BLE001 - reported through the result
            return CollectResult(source=collector.name, error=exc)

    def collect_round(self) -> RoundResult:
        """Run every source once and apply the completeness rule."""
        self.rounds += 1
        futures = [self._pool.submit(self._gather, c) for c in self._collectors]
        result = RoundResult(complete=True)

        for future in as_completed(futures):
            res = future.result()
            if res.error is not None:
                logger.warning("Source %s failed: %s", res.source, res.error)
                result.errors[res.source] = res.error
                result.complete = False
            elif not res.samples:
                logger.debug("Source %s reported no samples", res.source)
                result.complete = False
            else:
                for sample in res.samples:
                    if sample is None:
                        result.complete = False
                    else:
                        result.samples.append(sample)

        if not result.complete:
            logger.debug("Round %d incomplete, retrying immediately", self.rounds)
        return result

    def emit(self, samples: list[Sample]) -> None:
        """Tag *samples* with the host identity and pass them to every sink."""
        if not samples:
            return
        if self._hostname:
            samples = [s.with_tags(fqdn=self._hostname) for s in samples]
        for sink in self._sinks:
            try:
                sink(samples)
            except Exception:
                logger.exception("Sink failed, dropping %d samples", len(samples))
        self.emitted_rounds += 1

    def _sleep(self, seconds: float) -> None:
        self._stop_event.wait(seconds)

    def run(self) -> None:
        """Collect until stopped, or until the first complete round in one-shot mode."""
        while not self._stop_event.is_set():
            result = self.collect_round()
            if not result.complete:
                continue
            self.emit(result.samples)
            if not self._config.daemon:
                return
            self._sleep(self._config.interval_seconds)

    def start(self) -> None:
        """Start collecting in the background."""
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run, name="sysdelta-scheduler", daemon=True)
        self._thread.start()
        logger.info(
            "CollectorManager started (interval=%.3fs, consistency factor=%.3f, sources=%s)",
            self._config.interval_seconds,
            self._engine.consistency_factor,
            ",".join(c.name for c in self._collectors),
        )

    def stop(self) -> None:
        """Stop collecting after the current round."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("CollectorManager stopped")

    def close(self) -> None:
        """Stop and release the worker pool."""
        self.stop()
        self._pool.shutdown(wait=False)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
