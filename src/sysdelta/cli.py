"""CLI interface for sysdelta."""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
from pathlib import Path

from . import __version__
from .config import ConfigError, SysdeltaConfig, load_config, parse_duration, parse_source_list, validate_config

logger = logging.getLogger(__name__)


def _apply_cli_overrides(cfg: SysdeltaConfig, args: argparse.Namespace) -> SysdeltaConfig:
    """Let command-line flags win over the config file and environment."""
    if args.daemon:
        cfg.collector.daemon = True
    if args.interval is not None:
        cfg.collector.interval_seconds = parse_duration(args.interval)
    if args.consistency is not None:
        cfg.collector.consistency_seconds = parse_duration(args.consistency)
    if args.collect is not None:
        cfg.collector.collect = parse_source_list(args.collect)
    if args.format is not None:
        cfg.console.format = args.format
    if args.verbose:
        cfg.console.enabled = True
    return cfg


def _write_pidfile(path: str) -> None:
    try:
        Path(path).write_text(str(os.getpid()), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to create pidfile {path}: {exc}") from exc


def _cmd_collect(args: argparse.Namespace) -> None:
    """Run the collection scheduler."""
    cfg = validate_config(_apply_cli_overrides(load_config(args.config), args))

    from .collector.manager import CollectorManager
    from .exporter.console import ConsoleExporter
    from .exporter.local import LocalExporter

    manager = CollectorManager(cfg.collector)
    exporters = []
    previous = {}

    def _handle_signal(_sig: int, _frame: object) -> None:
        manager.stop()

    try:
        if cfg.local_exporter.enabled:
            exporters.append(LocalExporter(cfg.local_exporter))
        if cfg.console.enabled:
            exporters.append(ConsoleExporter(cfg.console.format))
        if cfg.mode == "online":
            from .exporter.otel import OtelExporter
            exporters.append(OtelExporter(cfg.otel))

        for exp in exporters:
            manager.add_sink(exp.export)

        # Only once every sink is up.
        if args.pidfile:
            _write_pidfile(args.pidfile)

        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.signal(sig, _handle_signal)

        logger.info(
            "sysdelta collecting (mode=%s, daemon=%s, interval=%ss)",
            cfg.mode,
            cfg.collector.daemon,
            cfg.collector.interval_seconds,
        )
        manager.run()
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        manager.close()
        for exp in exporters:
            exp.shutdown()


def _cmd_version(_args: argparse.Namespace) -> None:
    print(f"sysdelta {__version__}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the sysdelta CLI."""
    parser = argparse.ArgumentParser(
        prog="sysdelta",
        description="Collect system counters as per-interval deltas",
    )
    parser.add_argument("--config", default=None, help="Path to sysdelta.yaml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging and console output")
    sub = parser.add_subparsers(dest="command")

    # collect
    collect_p = sub.add_parser("collect", help="Collect system metrics")
    collect_p.add_argument("--daemon", "-D", action="store_true", help="Run in daemon mode")
    collect_p.add_argument("--interval", "-i", default=None, help="Time between rounds in daemon mode (e.g. 1s, 500ms)")
    collect_p.add_argument(
        "--consistency", "-C", default=None,
        help="Duration deltas are brought back to for data consistency (0s to disable)",
    )
    collect_p.add_argument("--collect", "-c", default=None, help="Comma-separated sources to collect")
    collect_p.add_argument("--pidfile", default=None, help="Write the process id to this file")
    collect_p.add_argument("--format", choices=["json", "table"], default=None, help="Console output format")
    collect_p.set_defaults(func=_cmd_collect)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except ConfigError as exc:
        print(f"sysdelta: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
