"""OpenTelemetry exporter – pushes samples via OTLP/HTTP."""

from __future__ import annotations

import logging
from typing import Any

from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource, SERVICE_NAME

from ..collector.base import Sample
from ..collector.numeric import plain
from ..config import OtelExporterConfig, read_headers_file
from .base import BaseExporter

logger = logging.getLogger(__name__)


class OtelExporter(BaseExporter):
    """Exports samples to an OpenTelemetry endpoint.

    Every numeric field becomes a gauge named ``<measurement>.<field>``
    with the sample's tags as attributes; the SDK's
    ``PeriodicExportingMetricReader`` flushes them to the configured
    OTLP/HTTP endpoint.
    """

    def __init__(self, config: OtelExporterConfig, reader: MetricReader | None = None) -> None:
        self._config = config
        resource = Resource.create({SERVICE_NAME: config.service_name})

        headers = dict(config.headers)
        if config.headers_file:
            headers.update(read_headers_file(config.headers_file))

        exporter_kwargs: dict[str, Any] = {
            "endpoint": f"{config.endpoint.rstrip('/')}/v1/metrics",
        }
        if headers:
            exporter_kwargs["headers"] = headers

        if reader is None:
            reader = PeriodicExportingMetricReader(
                OTLPMetricExporter(**exporter_kwargs),
                export_interval_millis=config.export_interval_ms,
            )
        self._provider = MeterProvider(resource=resource, metric_readers=[reader])
        self._meter = self._provider.get_meter("sysdelta")
        self._gauges: dict[str, Any] = {}

        logger.info(
            "OtelExporter initialized → %s (service=%s)",
            config.endpoint,
            config.service_name,
        )

    def _get_gauge(self, name: str) -> Any:
        if name not in self._gauges:
            self._gauges[name] = self._meter.create_gauge(name=name)
        return self._gauges[name]

    def export(self, samples: list[Sample]) -> None:
        for s in samples:
            for field_name, value in s.fields.items():
                value = plain(value)
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    continue
                self._get_gauge(f"{s.name}.{field_name}").set(value, attributes=s.tags)

    def shutdown(self) -> None:
        self._provider.shutdown()
        logger.info("OtelExporter shut down")
