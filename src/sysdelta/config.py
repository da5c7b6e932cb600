"""Configuration loading and validation for sysdelta."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_SOURCES = ["cpu", "cpus", "mem", "swap", "uptime", "load", "network", "disks", "mounts"]


class ConfigError(ValueError):
    """Unrecoverable configuration problem detected before collection starts."""


_NUMBER_RE = re.compile(r"^[0-9]*\.?[0-9]+$")
_DURATION_RE = re.compile(r"^(?:[0-9]*\.?[0-9]+(?:ms|s|m|h))+$")
_DURATION_PART_RE = re.compile(r"([0-9]*\.?[0-9]+)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: Any) -> float:
    """Parse ``1.5``, ``"500ms"``, ``"2s"`` or ``"1m30s"`` into seconds.

    Bare numbers are seconds; units are ``ms``, ``s``, ``m`` and ``h``.
    """
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if _NUMBER_RE.match(text):
        return float(text)
    if not _DURATION_RE.match(text):
        raise ConfigError(f"Invalid duration: {value!r}")
    return sum(float(number) * _DURATION_UNITS[unit] for number, unit in _DURATION_PART_RE.findall(text))


def parse_source_list(value: Any) -> list[str]:
    """Accept ``"cpu, mem"`` or ``["cpu", "mem"]``."""
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = list(value)
    return [str(item).strip() for item in items if str(item).strip()]


@dataclass
class OtelExporterConfig:
    """OpenTelemetry exporter settings."""

    endpoint: str = "http://localhost:4318"
    service_name: str = "sysdelta"
    headers: dict[str, str] = field(default_factory=dict)
    headers_file: str = ""
    export_interval_ms: int = 10000


@dataclass
class CollectorConfig:
    """Collection scheduler settings."""

    daemon: bool = False
    interval_seconds: float = 1.0
    consistency_seconds: float = 1.0
    collect: list[str] = field(default_factory=lambda: list(DEFAULT_SOURCES))
    network_interface: str = ""
    tag_host: bool = True
    hostname: str = ""

    @property
    def consistency_factor(self) -> float:
        """Scale that brings a delta back to the consistency window."""
        if self.consistency_seconds > 0:
            return self.consistency_seconds / self.interval_seconds
        return 1.0


@dataclass
class LocalExporterConfig:
    """Local file exporter settings."""

    enabled: bool = True
    output_dir: str = "./sysdelta_data"
    format: str = "jsonl"


@dataclass
class ConsoleExporterConfig:
    """Console output settings."""

    enabled: bool = False
    format: str = "json"


@dataclass
class SysdeltaConfig:
    """Top-level sysdelta configuration."""

    mode: str = "local"
    otel: OtelExporterConfig = field(default_factory=OtelExporterConfig)
    collector: CollectorConfig = field(default_factory=CollectorConfig)
    local_exporter: LocalExporterConfig = field(default_factory=LocalExporterConfig)
    console: ConsoleExporterConfig = field(default_factory=ConsoleExporterConfig)


def _merge_dict(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *source* into *target*."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_dict(target[key], value)
        else:
            target[key] = value
    return target


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using the SYSDELTA_ prefix."""
    env_map = {
        "SYSDELTA_MODE": ("mode",),
        "SYSDELTA_OTEL_ENDPOINT": ("otel", "endpoint"),
        "SYSDELTA_OTEL_SERVICE_NAME": ("otel", "service_name"),
        "SYSDELTA_COLLECTOR_INTERVAL": ("collector", "interval_seconds"),
        "SYSDELTA_COLLECTOR_CONSISTENCY": ("collector", "consistency_seconds"),
        "SYSDELTA_COLLECTOR_COLLECT": ("collector", "collect"),
        "SYSDELTA_COLLECTOR_DAEMON": ("collector", "daemon"),
        "SYSDELTA_LOCAL_OUTPUT_DIR": ("local_exporter", "output_dir"),
    }
    overrides: dict[str, Any] = {}
    for env_key, path in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            obj = overrides
            for part in path[:-1]:
                obj = obj.setdefault(part, {})
            final_key = path[-1]
            if final_key == "daemon":
                obj[final_key] = _parse_bool(value)
            else:
                obj[final_key] = value
    return _merge_dict(data, overrides)


def _section(cls: type, data: Any) -> Any:
    if not isinstance(data, dict):
        data = {}
    return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def _dict_to_config(data: dict[str, Any]) -> SysdeltaConfig:
    """Convert a raw dictionary to a SysdeltaConfig dataclass."""
    collector = _section(CollectorConfig, data.get("collector"))
    collector.interval_seconds = parse_duration(collector.interval_seconds)
    collector.consistency_seconds = parse_duration(collector.consistency_seconds)
    collector.collect = parse_source_list(collector.collect)

    return SysdeltaConfig(
        mode=data.get("mode", "local"),
        otel=_section(OtelExporterConfig, data.get("otel")),
        collector=collector,
        local_exporter=_section(LocalExporterConfig, data.get("local_exporter")),
        console=_section(ConsoleExporterConfig, data.get("console")),
    )


def read_headers_file(path: str | Path) -> dict[str, str]:
    """Read an OTLP auth header from the first line of *path* (``Name: value``)."""
    try:
        first_line = Path(path).read_text(encoding="utf-8").split("\n")[0]
    except OSError as exc:
        raise ConfigError(f"Unable to read headers file {path}: {exc}") from exc
    name, sep, value = first_line.partition(":")
    if not sep or not name.strip():
        raise ConfigError(f"Headers file {path} must start with 'Name: value'")
    return {name.strip(): value.strip()}


def validate_config(cfg: SysdeltaConfig) -> SysdeltaConfig:
    """Raise :class:`ConfigError` for settings the collector cannot run with."""
    if cfg.mode not in ("local", "online"):
        raise ConfigError(f"Unknown mode {cfg.mode!r} (expected 'local' or 'online')")
    if cfg.collector.interval_seconds <= 0:
        raise ConfigError("collector.interval_seconds must be positive")
    if cfg.collector.consistency_seconds < 0:
        raise ConfigError("collector.consistency_seconds must not be negative")
    if not cfg.collector.collect:
        raise ConfigError("collector.collect must name at least one source")
    if cfg.console.format not in ("json", "table"):
        raise ConfigError(f"Unknown console format {cfg.console.format!r}")
    return cfg


def load_config(path: str | Path | None = None) -> SysdeltaConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``sysdelta.yaml`` in the current directory if *path* is None.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("sysdelta.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            try:
                loaded = yaml.safe_load(fh)
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
            if isinstance(loaded, dict):
                data = loaded

    data = _apply_env_overrides(data)
    return _dict_to_config(data)
