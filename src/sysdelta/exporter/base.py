"""Base interface for sample exporters."""

from __future__ import annotations

import abc

from ..collector.base import Sample


class BaseExporter(abc.ABC):
    """Abstract base for exporters that receive complete rounds of samples."""

    @abc.abstractmethod
    def export(self, samples: list[Sample]) -> None:
        """Export one non-empty batch of samples."""

    @abc.abstractmethod
    def shutdown(self) -> None:
        """Flush and release resources."""
