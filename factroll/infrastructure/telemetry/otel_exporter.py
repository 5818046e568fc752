"""
OpenTelemetry Exporter for factroll

Architectural Intent:
- Exports rollout telemetry (per-batch metrics, rollout and batch spans) to
  OTLP-compatible backends
- Buffers metrics locally when no endpoint is configured so a rollout never
  depends on a collector being reachable

Security:
- Endpoint defaults to empty string (must be explicitly configured)
- Non-localhost http:// endpoints rejected unless insecure=True
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Any
from urllib.parse import urlparse
import logging
from datetime import datetime, UTC
from opentelemetry import metrics, trace

logger = logging.getLogger(__name__)

# Rollout metrics and the OTel instrument each maps to; anything else is a gauge
METRIC_INSTRUMENTS = {
    "factroll.batch.nodes": "counter",
    "factroll.batch.failed_nodes": "counter",
    "factroll.batch.duration_ms": "histogram",
    "factroll.rollout.success": "gauge",
}


@dataclass
class OTELConfig:
    endpoint: str = ""
    service_name: str = "factroll"
    environment: str = "production"
    enable_traces: bool = True
    enable_metrics: bool = True
    insecure: bool = False

    def __post_init__(self) -> None:
        if self.endpoint:
            parsed = urlparse(self.endpoint)
            is_localhost = parsed.hostname in ("localhost", "127.0.0.1", "::1")
            if parsed.scheme == "http" and not is_localhost and not self.insecure:
                raise ValueError(
                    f"Non-localhost HTTP endpoint '{self.endpoint}' requires "
                    "insecure=True or use https://. "
                    "Set insecure=True to explicitly allow plaintext export."
                )


class OTELExporter:
    """
    OpenTelemetry exporter for rollouts.

    Implements TelemetryPort: record_metric, start_span, end_span.
    """

    def __init__(self, config: OTELConfig):
        self.config = config
        self._initialized = False
        self._metrics_buffer: list[dict[str, Any]] = []
        self._meter: Any = None
        self._instruments: dict[str, tuple[str, Any]] = {}

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """Initialize the OpenTelemetry SDK and OTLP exporters."""
        if not self.config.endpoint:
            logger.info("OTEL endpoint not configured, telemetry buffered locally")
            return

        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
        from opentelemetry.sdk.resources import Resource, SERVICE_NAME
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
            OTLPMetricExporter,
        )

        resource = Resource(
            attributes={
                SERVICE_NAME: self.config.service_name,
                "environment": self.config.environment,
            }
        )

        if self.config.enable_traces:
            provider = TracerProvider(resource=resource)
            provider.add_span_processor(
                BatchSpanProcessor(
                    OTLPSpanExporter(
                        endpoint=self.config.endpoint, insecure=self.config.insecure
                    )
                )
            )
            trace.set_tracer_provider(provider)

        if self.config.enable_metrics:
            reader = PeriodicExportingMetricReader(
                OTLPMetricExporter(
                    endpoint=self.config.endpoint, insecure=self.config.insecure
                )
            )
            metrics.set_meter_provider(
                MeterProvider(resource=resource, metric_readers=[reader])
            )
            self._meter = metrics.get_meter(__name__)

        self._initialized = True
        logger.info("OTEL export enabled to %s", self.config.endpoint)

    def _get_instrument(self, name: str, unit: str = "") -> Any:
        """Get or create the instrument registered for a metric name."""
        if name not in self._instruments and self._meter:
            kind = METRIC_INSTRUMENTS.get(name, "gauge")
            factory = {
                "counter": self._meter.create_counter,
                "histogram": self._meter.create_histogram,
                "gauge": self._meter.create_gauge,
            }[kind]
            self._instruments[name] = (kind, factory(name, unit=unit))
        return self._instruments.get(name)

    def record_metric(
        self,
        name: str,
        value: float,
        unit: str = "",
        attributes: Optional[dict[str, str]] = None,
    ) -> None:
        """Record a metric value."""
        self._metrics_buffer.append(
            {
                "name": name,
                "value": value,
                "unit": unit,
                "attributes": attributes or {},
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )

        if self._initialized:
            entry = self._get_instrument(name, unit)
            if entry:
                kind, instrument = entry
                if kind == "counter":
                    instrument.add(value, attributes=attributes or {})
                elif kind == "histogram":
                    instrument.record(value, attributes=attributes or {})
                else:
                    instrument.set(value, attributes=attributes or {})

    def start_span(
        self,
        name: str,
        attributes: Optional[dict[str, str]] = None,
    ) -> Optional[Any]:
        """Start a tracing span. Returns None while telemetry is disabled."""
        if not self._initialized:
            return None
        tracer = trace.get_tracer(__name__)
        return tracer.start_span(name, attributes=attributes or {})

    def end_span(self, span: Any) -> None:
        if span is not None:
            span.end()


def create_exporter(
    endpoint: Optional[str] = None,
    service_name: str = "factroll",
    insecure: bool = False,
) -> OTELExporter:
    """Factory function to create and initialize an OTEL exporter."""
    exporter = OTELExporter(
        OTELConfig(endpoint=endpoint or "", service_name=service_name, insecure=insecure)
    )
    exporter.initialize()
    return exporter
