"""Base interface for metric sources and the samples they produce."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, Optional

from .numeric import plain


@dataclass(frozen=True)
class Sample:
    """A single measurement: name, tags, fields and timestamp."""

    name: str
    fields: dict[str, Any]
    timestamp: float
    tags: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("sample name must not be empty")
        if not self.fields:
            raise ValueError(f"sample {self.name!r} has no fields")

    def with_fields(self, fields: dict[str, Any]) -> Sample:
        """Return a copy carrying *fields* instead of the current ones."""
        return Sample(name=self.name, fields=fields, timestamp=self.timestamp, tags=dict(self.tags))

    def with_tags(self, **tags: str) -> Sample:
        """Return a copy with *tags* merged over the current tags."""
        merged = dict(self.tags)
        merged.update(tags)
        return Sample(name=self.name, fields=dict(self.fields), timestamp=self.timestamp, tags=merged)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "tags": dict(self.tags),
            "fields": {k: plain(v) for k, v in self.fields.items()},
            "timestamp": self.timestamp,
        }


# A batch entry is either a finished sample or ``None`` when the diff engine
# has only just seen one of its fields.
Batch = list[Optional[Sample]]


@dataclass
class CollectResult:
    """What one source reported for one round."""

    source: str
    samples: Batch = field(default_factory=list)
    error: BaseException | None = None


class BaseCollector(abc.ABC):
    """Abstract base class for metric sources."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Source name used in configuration and logs."""

    @abc.abstractmethod
    def collect(self) -> Batch:
        """Collect one batch of samples. Raise to report a failure."""

    def to_dict(self, samples: Batch) -> list[dict[str, Any]]:
        """Serialize the finished samples of a batch to plain dictionaries."""
        return [s.to_dict() for s in samples if s is not None]
