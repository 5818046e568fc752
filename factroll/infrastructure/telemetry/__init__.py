"""
Telemetry Infrastructure

OpenTelemetry export of rollout spans and batch metrics.
"""

from factroll.infrastructure.telemetry.otel_exporter import (
    METRIC_INSTRUMENTS,
    OTELConfig,
    OTELExporter,
    create_exporter,
)

__all__ = ["METRIC_INSTRUMENTS", "OTELConfig", "OTELExporter", "create_exporter"]
