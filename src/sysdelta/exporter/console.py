"""Console exporter – prints each complete round to stdout."""

from __future__ import annotations

import json
import sys
from typing import TextIO

from rich.console import Console
from rich.table import Table

from ..collector.base import Sample
from ..collector.numeric import plain
from .base import BaseExporter


class ConsoleExporter(BaseExporter):
    """Prints samples as one JSON array per round, or as a rich table."""

    def __init__(self, fmt: str = "json", stream: TextIO | None = None) -> None:
        self._format = fmt
        self._stream = stream

    def export(self, samples: list[Sample]) -> None:
        stream = self._stream or sys.stdout
        if self._format == "table":
            self._print_table(samples, stream)
        else:
            stream.write(json.dumps([s.to_dict() for s in samples]) + "\n")
            stream.flush()

    def _print_table(self, samples: list[Sample], stream: TextIO) -> None:
        console = Console(file=stream)
        table = Table(title="sysdelta", show_lines=False)
        table.add_column("Measurement", style="cyan")
        table.add_column("Tags", style="dim")
        table.add_column("Field")
        table.add_column("Value", justify="right")

        for s in samples:
            tags = ",".join(f"{k}={v}" for k, v in sorted(s.tags.items()))
            for field_name, value in s.fields.items():
                table.add_row(s.name, tags, field_name, str(plain(value)))

        console.print(table)

    def shutdown(self) -> None:
        pass
