"""
Prometheus metrics collection for date-transform

This module provides metrics instrumentation for monitoring
record conversion outcomes and configuration validation.
"""
import os
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# RECORD METRICS
# =======================

# Records processed counter
records_transformed_total = Counter(
    name="date_transform_records_total",
    documentation="Total number of records processed by the transform",
    labelnames=["stage", "status"],  # status: emitted, error, failed
    registry=REGISTRY,
)

# Field conversions counter
field_conversions_total = Counter(
    name="date_transform_field_conversions_total",
    documentation="Total number of source/target field mappings processed",
    labelnames=["stage", "outcome"],  # outcome: written, skipped, routed_to_error
    registry=REGISTRY,
)

# Record processing latency (individual records)
record_processing_latency_seconds = Histogram(
    name="date_transform_record_latency_seconds",
    documentation="Latency for transforming individual records",
    labelnames=["stage"],
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1],
    registry=REGISTRY,
)

# =======================
# CONFIGURATION METRICS
# =======================

# Validation failures counter
validation_failures_total = Counter(
    name="date_transform_validation_failures_total",
    documentation="Total number of configuration validation failures",
    labelnames=["stage"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    counter.labels(**labels).inc(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    histogram.labels(**labels).observe(value)


# =======================
# METRICS COLLECTOR CLASS
# =======================

class MetricsCollector:
    """
    Metrics collector for one transform stage.

    Holds only the stage label so it can be recreated cheaply wherever the
    transform runs (including Spark executors).
    """

    def __init__(self, stage: str = "DateTransform"):
        """
        Initialize metrics collector.

        Args:
            stage: Stage name used as the ``stage`` label
        """
        self.stage = stage

    def record_outcome(self, status: str, duration_seconds: float = 0.0) -> None:
        """
        Record the outcome of one record.

        Args:
            status: emitted, error (routed to the error channel) or failed
            duration_seconds: Time taken to process the record
        """
        increment_counter(records_transformed_total, 1, stage=self.stage, status=status)
        if duration_seconds > 0:
            observe_histogram(record_processing_latency_seconds, duration_seconds, stage=self.stage)

    def record_field_outcome(self, outcome: str) -> None:
        increment_counter(field_conversions_total, 1, stage=self.stage, outcome=outcome)

    def record_validation_failures(self, count: int) -> None:
        if count > 0:
            increment_counter(validation_failures_total, count, stage=self.stage)
